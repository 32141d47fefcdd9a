# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Java source handling: tokenizer, bracket trees, and rendering.
"""

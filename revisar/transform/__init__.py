# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Transformations: generalizing clusters, matching patterns and rewriting code."""

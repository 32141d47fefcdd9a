# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Revisar: mine Java revision histories for recurring code edits.

Pipeline stages:
  - mining: crawl repositories, walk history, extract concrete edits
  - clustering: partition and anti-unify similar edits
  - transform: generalize clusters into reusable transformations and apply them
"""

__version__ = "0.1.0"

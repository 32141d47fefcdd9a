# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Edit mining package.

Subsystems:
  - crawl: clone repositories with full history at pinned commits
  - history: walk commits and pair up file versions
  - extract: diff file versions into concrete edits
  - store: shard, checksum and version the extracted edits
"""

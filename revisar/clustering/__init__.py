# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Edit clustering: templates, anti-unification, partitioning and the clusterer."""

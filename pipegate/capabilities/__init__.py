# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Capability providers: the external agents pipelines call into."""

from pipegate.capabilities.base import Capability, CapabilityResponse, invoke_capability
from pipegate.capabilities.registry import CapabilityRegistry


__all__ = [
    "Capability",
    "CapabilityRegistry",
    "CapabilityResponse",
    "invoke_capability",
]

# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""csrfly security — CSRF token lifecycle and extraction."""

from csrfly.security.csrf import (
    SAFE_METHODS,
    CsrfConfig,
    generate_csrf_token,
    resolve_config,
    resolve_expected_token,
    validate_csrf_token,
)
from csrfly.security.extractors import Extractor, TokenLookup, TokenSource, build_extractor

__all__ = [
    "SAFE_METHODS",
    "CsrfConfig",
    "Extractor",
    "TokenLookup",
    "TokenSource",
    "build_extractor",
    "generate_csrf_token",
    "resolve_config",
    "resolve_expected_token",
    "validate_csrf_token",
]

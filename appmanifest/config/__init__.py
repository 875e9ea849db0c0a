# Copyright 2025 Roger Cibrian
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

"""Workspace discovery and manifest file loading.

Public API:

- find_workspace_root: Locate the project directory holding ``copilot/``
- read_summary: Application name from ``copilot/.workspace``
- manifest_path / list_workloads: Workload manifests in a workspace
- read_manifest_text / load_manifest_document: Read, interpolate and parse

Example:
    Basic usage:

        from pathlib import Path
        from appmanifest.config import find_workspace_root, manifest_path

        root = find_workspace_root(Path.cwd())
        path = manifest_path(root, "api")

"""

from .loader import load_manifest_document, read_manifest_text
from .workspace import find_workspace_root, list_workloads, manifest_path, read_summary

__all__ = [
    "find_workspace_root",
    "list_workloads",
    "load_manifest_document",
    "manifest_path",
    "read_manifest_text",
    "read_summary",
]

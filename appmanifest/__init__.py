"""
appmanifest - Service Deployment Manifests

A Python library and CLI for reading declarative service deployment
manifests: YAML documents with one base configuration and sparse
per-environment overrides.

appmanifest provides:
  - Polymorphic manifest keys (short scalar form or long structured form)
  - Per-environment overrides where an unset field inherits from the base
  - ${NAME} substitution from predefined and environment variables
  - Schema validation of the effective configuration

Quick Start
-----------
Validate a manifest for every environment:

    $ appmanifest validate copilot/api/manifest.yml

Print the effective manifest for one environment:

    $ appmanifest show api --env prod

For full CLI documentation:

    $ appmanifest --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    High-level orchestration functions.
config : package
    Workspace discovery and manifest file loading.
manifest : package
    Records, sum types, overlay, interpolation and the workload schema.
validation : module
    Schema validation of decoded workloads.

Public API
----------
The primary interface is the CLI, but key functions are exported for
programmatic use:

    from appmanifest.core import load_workload, render_workload
    from appmanifest.validation import validate_manifest
    from appmanifest.manifest import AOrB, Union, Interpolator, resolve

For more details, see the individual module docstrings.

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Service deployment manifests with per-environment overrides"

# Re-export commonly used functions for convenience
from appmanifest.core import load_workload, render_workload
from appmanifest.manifest import AOrB, Interpolator, Union, Workload, resolve
from appmanifest.validation import validate_manifest, validate_workload

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "load_workload",
    "render_workload",
    "validate_manifest",
    "validate_workload",
    "AOrB",
    "Union",
    "Interpolator",
    "Workload",
    "resolve",
]

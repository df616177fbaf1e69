"""
integration-operator - reconciliation core for Integration resources.

Two pieces make up the core:

- the trait pipeline (``integration_operator.trait``), which turns an
  Integration and its kit into the desired workload objects;
- the monitor action (``integration_operator.controller``), which compares
  those objects and the live pods with the Integration status and moves it
  through Deploying, Running and Error.

Platform access goes through ``integration_operator.platform`` protocols.
"""

__version__ = "0.1.0"

from integration_operator.controller import MonitorAction
from integration_operator.core import OperatorSettings, configure_logging, get_settings
from integration_operator.trait import TraitCatalog, apply

__all__ = [
    "__version__",
    "MonitorAction",
    "TraitCatalog",
    "apply",
    "OperatorSettings",
    "configure_logging",
    "get_settings",
]

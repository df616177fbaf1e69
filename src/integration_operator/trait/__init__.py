"""Trait pipeline: Environment, trait contract, catalog and built-in traits."""

from integration_operator.trait.base import Trait
from integration_operator.trait.builtin import (
    ConfigEntry,
    ContainerTrait,
    CronTrait,
    DeploymentTrait,
    KnativeServiceTrait,
    MountTrait,
    builtin_traits,
    parse_config_entry,
)
from integration_operator.trait.catalog import TraitCatalog, apply
from integration_operator.trait.environment import (
    ControllerStrategy,
    Environment,
    ResourceCollection,
    new_environment,
)

__all__ = [
    "Trait",
    "TraitCatalog",
    "apply",
    "ControllerStrategy",
    "Environment",
    "ResourceCollection",
    "new_environment",
    "ConfigEntry",
    "parse_config_entry",
    "ContainerTrait",
    "CronTrait",
    "DeploymentTrait",
    "KnativeServiceTrait",
    "MountTrait",
    "builtin_traits",
]

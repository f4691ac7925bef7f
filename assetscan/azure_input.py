"""The Azure asset input: configuration, credentials and the collection loop."""

from __future__ import annotations

import functools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from .assets import BaseConfig, Plugin, Publisher, is_type_enabled
from .azure_vm import ListVMs, collect_azure_vm_assets
from .gcp_input import _parse_duration, _string_list

log = logging.getLogger(__name__)

NAME = "assets_azure"
_DEFAULT_PERIOD = 600.0

# Called with the credential options; yields subscription IDs.
SubscriptionLister = Callable[[dict], Iterable[str]]
# Called with the credential options and a subscription ID; yields VMs.
VMLister = Callable[[dict, str], Iterable[Any]]


@dataclass
class AzureConfig(BaseConfig):
    """Settings of the Azure asset input."""

    period: float = _DEFAULT_PERIOD
    regions: list = field(default_factory=list)
    client_id: str = ""
    client_secret: str = ""
    subscription_id: str = ""
    tenant_id: str = ""
    resource_group: str = ""


def _credentials(cfg: AzureConfig) -> dict:
    """Client-secret credentials when fully configured, else the default chain."""
    if cfg.tenant_id and cfg.client_id and cfg.client_secret:
        log.debug("Retrieving Azure credentials from the input configuration")
        return {
            "tenant_id": cfg.tenant_id,
            "client_id": cfg.client_id,
            "client_secret": cfg.client_secret,
        }
    log.debug("No Client or Tenant configuration provided. Using default Azure credentials")
    return {}


def azure_subscriptions(cfg: AzureConfig,
                        list_subscriptions: Optional[Callable[[], Iterable[str]]]) -> list:
    """The configured subscription, or every subscription the lister yields."""
    if cfg.subscription_id:
        return [cfg.subscription_id]
    if list_subscriptions is None:
        raise LookupError("no subscription client available")
    try:
        return list(list_subscriptions())
    except Exception as err:
        raise RuntimeError(f"failed to advance page: {err}") from err


class AssetsAzure:
    """Periodically collects the virtual machines of Azure subscriptions."""

    name = NAME

    def __init__(self, config: AzureConfig,
                 list_subscriptions: Optional[SubscriptionLister] = None,
                 list_vms: Optional[VMLister] = None) -> None:
        self.config = config
        self.list_subscriptions = list_subscriptions
        self.list_vms = list_vms

    def run(self, cancel: threading.Event, publisher: Publisher) -> None:
        """Collect now and then every period until ``cancel`` is set."""
        log.info("azure asset collector run started")
        try:
            if cancel.is_set():
                return
            self.collect(publisher)
            while not cancel.wait(self.config.period):
                self.collect(publisher)
        finally:
            log.info("azure asset collector run stopped")

    def collect(self, publisher: Publisher) -> list:
        """Start one VM collector thread per subscription and return them."""
        cfg = self.config
        creds = _credentials(cfg)
        lister = None
        if self.list_subscriptions is not None:
            lister = functools.partial(self.list_subscriptions, creds)
        try:
            subscriptions = azure_subscriptions(cfg, lister)
        except Exception as err:
            log.error("Error while retrieving Azure subscriptions list: %s", err)
            subscriptions = []

        threads = []
        for sub in subscriptions:
            if not is_type_enabled(cfg.asset_types, "azure.vm.instance"):
                continue
            if self.list_vms is None:
                log.error("Error creating Azure Compute client: no client available")
                return threads
            list_vms = functools.partial(self.list_vms, creds, sub)
            thread = threading.Thread(target=self._collect_vms,
                                      args=(list_vms, sub, publisher),
                                      name=f"azure-vm-{sub}", daemon=True)
            thread.start()
            threads.append(thread)
        return threads

    def _collect_vms(self, list_vms: ListVMs, subscription: str,
                     publisher: Publisher) -> None:
        cfg = self.config
        try:
            collect_azure_vm_assets(list_vms, subscription, cfg.regions,
                                    cfg.resource_group, publisher)
        except Exception as err:
            log.error("Error while collecting Azure VM assets: %s", err)


def _string(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def configure(settings: Optional[Mapping[str, Any]] = None) -> AssetsAzure:
    """Build the Azure input from its settings; unknown keys are ignored."""
    settings = dict(settings or {})
    cfg = AzureConfig()
    if "period" in settings:
        cfg.period = _parse_duration(settings["period"])
    if settings.get("asset_types") is not None:
        cfg.asset_types = _string_list("asset_types", settings["asset_types"])
    if settings.get("regions") is not None:
        cfg.regions = _string_list("regions", settings["regions"])
    for key in ("client_id", "client_secret", "subscription_id", "tenant_id",
                "resource_group"):
        if settings.get(key) is not None:
            setattr(cfg, key, _string(key, settings[key]))
    return AssetsAzure(cfg)


def plugin() -> Plugin:
    return Plugin(name=NAME, stability="stable", info=NAME, manager=configure)
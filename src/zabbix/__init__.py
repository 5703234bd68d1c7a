"""Zabbix JSON-RPC client and Telegram alert provisioning."""

from src.zabbix.client import ZabbixAPIError, ZabbixClient, ZabbixError
from src.zabbix.setup import run_setup

__all__ = [
    "ZabbixAPIError",
    "ZabbixClient",
    "ZabbixError",
    "run_setup",
]

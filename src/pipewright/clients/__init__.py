from typing import Callable, Dict

from ..config import RunConfig
from ..ui.console import Console
from .base import Client
from .local import LocalClient
from .plan import PlanClient

ClientInitializer = Callable[[RunConfig, Console], Client]

CLIENTS: Dict[str, ClientInitializer] = {
    "local": LocalClient,
    "plan": PlanClient,
}


def new_client(config: RunConfig, console: Console) -> Client:
    try:
        init = CLIENTS[config.client]
    except KeyError:
        raise ValueError(
            f"unknown client '{config.client}'. Known clients: {sorted(CLIENTS)}"
        ) from None
    return init(config, console)

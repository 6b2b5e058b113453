# state/default.py
from __future__ import annotations

from typing import Callable, Dict, List, Optional, TextIO
from urllib.parse import parse_qs, unquote, urlparse, urlunparse

from ..config import RunConfig
from ..ui.console import Console
from .args import ArgMap, ArgMapReader
from .base import Handler, Reader
from .errors import UnsupportedStateError
from .filesystem import FilesystemState
from .log_wrapper import HandlerLogWrapper, ReaderLogWrapper
from .object_storage import DirectoryObjectStorage, ObjectStorageHandler, RedisObjectStorage
from .state import State
from .stdin import StdinReader

DEFAULT_BUCKET = "pipewright"


def _query(url: str) -> Dict[str, str]:
    return {k: v[-1] for k, v in parse_qs(urlparse(url).query).items()}


def _filesystem(url: str) -> Handler:
    u = urlparse(url)
    path = unquote(u.netloc + u.path) if u.scheme else url
    return FilesystemState(path)


def _directory_objects(url: str) -> Handler:
    u = urlparse(url)
    q = _query(url)
    storage = DirectoryObjectStorage(unquote(u.netloc + u.path))
    return ObjectStorageHandler(storage, q.get("bucket", DEFAULT_BUCKET), q.get("base", ""))


def _redis_objects(url: str) -> Handler:
    u = urlparse(url)
    q = _query(url)
    storage = RedisObjectStorage.from_url(urlunparse(u._replace(query="")))
    return ObjectStorageHandler(storage, q.get("bucket", DEFAULT_BUCKET), q.get("base", ""))


HANDLERS: Dict[str, Callable[[str], Handler]] = {
    "": _filesystem,
    "file": _filesystem,
    "fs": _filesystem,
    "dir": _directory_objects,
    "redis": _redis_objects,
    "rediss": _redis_objects,
}


def handler_from_url(url: str) -> Handler:
    """
    Pick a state handler from a URL:
      file:///var/pipewright/state             state.json in that directory
      dir:///var/objects?bucket=b&base=build   one object per argument on disk
      redis://host:6379/0?bucket=b&base=build  one object per argument in redis
    """
    scheme = urlparse(url).scheme
    try:
        init = HANDLERS[scheme]
    except KeyError:
        raise UnsupportedStateError(url) from None
    return init(url)


def new_default_state(
    config: RunConfig,
    console: Console,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> State:
    """State for a run: the configured handler, falling back to --arg values, then to a prompt."""
    handler = HandlerLogWrapper(handler_from_url(config.state), console)

    fallback: List[Reader] = [ReaderLogWrapper(ArgMapReader(ArgMap(config.args)), console)]
    if config.can_stdin_prompt:
        fallback.append(ReaderLogWrapper(StdinReader(stdin, stdout), console))

    console.print_debug(f"state: using {handler!r} with fallback {fallback!r}")
    return State(handler, fallback, console)

from .argument import (
    BRANCH,
    BUILD_ID,
    CLIENT_PROVIDED_ARGUMENTS,
    COMMIT_REF,
    COMMIT_SHA,
    REMOTE_URL,
    SOURCE_FS,
    TAG_NAME,
    WORKING_DIR,
    Argument,
    ArgumentType,
    bool_argument,
    directory_argument,
    file_argument,
    float64_argument,
    int64_argument,
    secret_argument,
    string_argument,
    types_equal,
    unpackaged_directory_argument,
    without,
)
from .args import ArgMap, ArgMapReader
from .base import Handler, Reader, Writer
from .default import handler_from_url, new_default_state
from .errors import (
    ArgumentTypeError,
    EmptyStateError,
    KeyExistsError,
    KeyNotFoundError,
    ObjectNotFoundError,
    StateError,
    UnsupportedStateError,
)
from .filesystem import FilesystemState
from .json_state import StateValue, set_value_from_json
from .log_wrapper import HandlerLogWrapper, ReaderLogWrapper
from .object_storage import (
    DirectoryObjectStorage,
    ObjectStorage,
    ObjectStorageHandler,
    RedisObjectStorage,
)
from .observer import Observer
from .state import State
from .stdin import StdinReader

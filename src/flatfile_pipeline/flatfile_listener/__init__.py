# src/flatfile_pipeline/flatfile_listener/__init__.py

# Listener package: record hooks and the workbook submit action
from .main import main as listener_main, build_listener, handle_commit
from .config_loader import init_env, load_blueprint, validate_config, get_config
from .client import FlatfileClient, get_client
from .events import EventDispatcher, EventTopic, FlatfileEvent, JobType
from .processor import process_record, process_records, build_rules
from .records import FieldSpec, Record, SheetSchema
from .rules import (
    FieldRule,
    capitalize,
    is_non_empty_string,
    is_valid_email,
    is_valid_phone,
    transform_capitalize,
    validate_string,
    validate_email,
    validate_phone,
)
from .submit import JobOutcome, JobState, SubmitJobController, WorkbookLocks
from .webhook import deliver
from .errors import (
    FlatfilePipelineError,
    ConfigurationError,
    PlatformAPIError,
    SubmitJobError,
    CollectionError,
    DeliveryError,
    Non200ResponseError,
)

__all__ = [
    # Main entry point
    "listener_main",
    "build_listener",
    "handle_commit",

    # Configuration
    "init_env",
    "load_blueprint",
    "validate_config",
    "get_config",

    # Platform client
    "FlatfileClient",
    "get_client",

    # Events
    "EventDispatcher",
    "EventTopic",
    "FlatfileEvent",
    "JobType",

    # Records & rules
    "FieldSpec",
    "Record",
    "SheetSchema",
    "FieldRule",
    "capitalize",
    "is_non_empty_string",
    "is_valid_email",
    "is_valid_phone",
    "transform_capitalize",
    "validate_string",
    "validate_email",
    "validate_phone",
    "process_record",
    "process_records",
    "build_rules",

    # Submit job
    "JobOutcome",
    "JobState",
    "SubmitJobController",
    "WorkbookLocks",
    "deliver",

    # Errors
    "FlatfilePipelineError",
    "ConfigurationError",
    "PlatformAPIError",
    "SubmitJobError",
    "CollectionError",
    "DeliveryError",
    "Non200ResponseError",
]

"""
Temporal decorators for turning repository classes into activities and
workflow proxies.

Two class decorators share one method discovery routine:

1. ``temporal_activity_registration`` wraps the public async methods of a
   concrete repository as Temporal activities.
2. ``temporal_workflow_proxy`` generates a workflow-side class whose methods
   call those activities by name.

Because both sides discover methods from the same protocol, the activity
names registered on the worker always line up with the names the workflow
proxies execute.
"""

import functools
import inspect
import logging
from datetime import timedelta
from typing import (
    Any,
    Callable,
    Dict,
    Optional,
    Tuple,
    Type,
    TypeVar,
    get_type_hints,
)

from pydantic import TypeAdapter
from temporalio import activity, workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Remote calls are single-attempt: a failed activity is final.
SINGLE_ATTEMPT_RETRY_POLICY = RetryPolicy(maximum_attempts=1)


def _is_protocol_class(cls: type) -> bool:
    return bool(getattr(cls, "_is_protocol", False))


def _discover_protocol_methods(
    cls_hierarchy: tuple[type, ...],
) -> Dict[str, Callable[..., Any]]:
    """
    Find the public async methods declared by the protocols in a class
    hierarchy.

    Falls back to every public async method in the hierarchy when no
    protocol base is present.
    """
    methods: Dict[str, Callable[..., Any]] = {}

    protocols = [c for c in cls_hierarchy if _is_protocol_class(c)]
    candidates = protocols or [c for c in cls_hierarchy if c is not object]

    for base_class in candidates:
        for name, member in base_class.__dict__.items():
            if name in methods or name.startswith("_"):
                continue
            if inspect.iscoroutinefunction(member):
                methods[name] = member

    logger.debug(
        "Discovered repository methods",
        extra={
            "classes": [c.__name__ for c in candidates],
            "methods": sorted(methods),
            "from_protocol": bool(protocols),
        },
    )
    return methods


def temporal_activity_registration(
    activity_prefix: str,
    error_types: Tuple[Type[Exception], ...] = (),
) -> Callable[[Type[T]], Type[T]]:
    """
    Class decorator that registers each public async protocol method as a
    Temporal activity named ``{activity_prefix}.{method_name}``.

    Exceptions of ``error_types`` are re-raised as non-retryable
    ``ApplicationError``s carrying the exception's attributes as details,
    so the workflow side can rebuild them with ``raise_as``.

    Example:
        @temporal_activity_registration("asset_sync.asset_directory")
        class TemporalJsmAssetDirectoryRepository(
            JsmAssetDirectoryRepository
        ):
            pass
    """

    def decorator(cls: Type[T]) -> Type[T]:
        wrapped = []
        for name in _discover_protocol_methods(cls.__mro__):
            # Resolve through the class so the concrete implementation is
            # wrapped, not the protocol stub.
            implementation = getattr(cls, name)

            def make_wrapper(
                original: Callable[..., Any], method_name: str
            ) -> Callable[..., Any]:
                @functools.wraps(original)
                async def wrapper(*args: Any, **kwargs: Any) -> Any:
                    try:
                        return await original(*args, **kwargs)
                    except error_types as e:
                        raise ApplicationError(
                            str(e),
                            dict(vars(e)),
                            type=type(e).__name__,
                            non_retryable=True,
                        ) from e

                wrapper.__name__ = method_name
                wrapper.__qualname__ = f"{cls.__name__}.{method_name}"
                return wrapper

            activity_name = f"{activity_prefix}.{name}"
            setattr(
                cls,
                name,
                activity.defn(name=activity_name)(
                    make_wrapper(implementation, name)
                ),
            )
            wrapped.append(activity_name)

        logger.debug(
            f"Registered activities for {cls.__name__}",
            extra={"activities": wrapped},
        )
        return cls

    return decorator


def temporal_workflow_proxy(
    activity_base: str,
    default_timeout_seconds: int = 30,
    raise_as: Optional[Callable[..., Exception]] = None,
) -> Callable[[Type[T]], Type[T]]:
    """
    Class decorator that implements every protocol method as a call to the
    activity ``{activity_base}.{method_name}``.

    Return values are validated back into the annotated return type, so
    proxies hand domain objects to use cases exactly as the concrete
    repositories do. Activities run with a single-attempt retry policy.

    Args:
        activity_base: Activity name prefix shared with the registration
        default_timeout_seconds: start-to-close timeout for each activity
        raise_as: Optional exception factory; when given, a failed activity
            is re-raised as ``raise_as(message, **details)`` so callers see
            the same error type as with a direct repository call. The
            details are those attached by ``temporal_activity_registration``.
    """

    def decorator(cls: Type[T]) -> Type[T]:
        timeout = timedelta(seconds=default_timeout_seconds)
        wrapped = []

        for method_name, original in _discover_protocol_methods(
            cls.__mro__
        ).items():
            return_type = get_type_hints(original).get("return", Any)
            adapter = (
                None
                if return_type in (None, type(None), Any)
                else TypeAdapter(return_type)
            )

            def make_method(
                method_name: str,
                adapter: Optional[TypeAdapter],
                original: Callable[..., Any],
            ) -> Callable[..., Any]:
                activity_name = f"{activity_base}.{method_name}"

                @functools.wraps(original)
                async def workflow_method(
                    self: Any, *args: Any, **kwargs: Any
                ) -> Any:
                    if kwargs:
                        raise ValueError(
                            f"kwargs not supported in workflow proxy "
                            f"for {method_name}. Use positional args."
                        )
                    logger.debug(
                        f"Workflow: Calling {method_name} activity",
                        extra={"activity_name": activity_name},
                    )
                    try:
                        raw_result = await workflow.execute_activity(
                            activity_name,
                            args=list(args),
                            start_to_close_timeout=timeout,
                            retry_policy=SINGLE_ATTEMPT_RETRY_POLICY,
                        )
                    except ActivityError as e:
                        if raise_as is None:
                            raise
                        cause = e.cause or e
                        details: Dict[str, Any] = {}
                        if (
                            isinstance(cause, ApplicationError)
                            and cause.details
                            and isinstance(cause.details[0], dict)
                        ):
                            details = cause.details[0]
                        raise raise_as(
                            f"{activity_name} failed: {cause}", **details
                        ) from e

                    if adapter is None or raw_result is None:
                        return raw_result
                    return adapter.validate_python(raw_result)

                return workflow_method

            setattr(
                cls, method_name, make_method(method_name, adapter, original)
            )
            wrapped.append(method_name)

        def __init__(proxy_self: Any) -> None:
            proxy_self.activity_timeout = timeout
            proxy_self.retry_policy = SINGLE_ATTEMPT_RETRY_POLICY

        setattr(cls, "__init__", __init__)

        logger.debug(
            f"Temporal workflow proxy decorator applied to {cls.__name__}",
            extra={
                "wrapped_methods": wrapped,
                "activity_base": activity_base,
                "default_timeout_seconds": default_timeout_seconds,
            },
        )
        return cls

    return decorator

"""
Tests for the Temporal repository decorators.

The decorators are exercised in isolation with a small label store
protocol, so these tests do not depend on any real repository.
"""

from datetime import timedelta
from typing import List, Optional, Protocol, runtime_checkable
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import BaseModel
from temporalio.exceptions import ActivityError, ApplicationError, RetryState

from util.temporal import (
    SINGLE_ATTEMPT_RETRY_POLICY,
    temporal_activity_registration,
    temporal_workflow_proxy,
)


class Label(BaseModel):
    key: str
    text: str


class StoreError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class LabelStore(Protocol):
    async def get_label(self, key: str) -> Optional[Label]:
        """Return the label stored under ``key``."""
        ...

    async def list_labels(self) -> List[Label]: ...

    async def delete_label(self, key: str) -> None: ...


class MemoryLabelStore(LabelStore):
    def __init__(self) -> None:
        self.labels = {"a": Label(key="a", text="first")}

    async def get_label(self, key: str) -> Optional[Label]:
        """Return the label stored under ``key``."""
        if key == "broken":
            raise StoreError("store unavailable", status_code=503)
        if key == "crash":
            raise RuntimeError("unexpected")
        return self.labels.get(key)

    async def list_labels(self) -> List[Label]:
        return list(self.labels.values())

    async def delete_label(self, key: str) -> None:
        self.labels.pop(key, None)

    async def rebuild_index(self) -> None:
        """Public, but not part of the protocol."""

    async def _load(self) -> None:
        pass

    def describe(self) -> str:
        return "memory"


def definition_name(fn: object) -> Optional[str]:
    definition = getattr(fn, "__temporal_activity_definition", None)
    return definition.name if definition else None


def activity_failure(cause: Exception) -> ActivityError:
    error = ActivityError(
        "Activity task failed",
        scheduled_event_id=1,
        started_event_id=2,
        identity="worker",
        activity_type="labels.get_label",
        activity_id="1",
        retry_state=RetryState.NON_RETRYABLE_FAILURE,
    )
    error.__cause__ = cause
    return error


class TestActivityRegistration:
    def test_protocol_methods_become_activities(self) -> None:
        @temporal_activity_registration("test.labels")
        class ActivityLabelStore(MemoryLabelStore):
            pass

        assert definition_name(ActivityLabelStore.get_label) == (
            "test.labels.get_label"
        )
        assert definition_name(ActivityLabelStore.list_labels) == (
            "test.labels.list_labels"
        )
        assert definition_name(ActivityLabelStore.delete_label) == (
            "test.labels.delete_label"
        )

    def test_other_methods_are_left_alone(self) -> None:
        @temporal_activity_registration("test.labels")
        class ActivityLabelStore(MemoryLabelStore):
            pass

        assert definition_name(ActivityLabelStore.rebuild_index) is None
        assert definition_name(ActivityLabelStore._load) is None
        assert definition_name(ActivityLabelStore.describe) is None
        assert ActivityLabelStore().describe() == "memory"

    def test_without_protocol_every_public_async_method_is_wrapped(
        self,
    ) -> None:
        class PlainStore:
            async def fetch(self, key: str) -> str:
                return key

            async def _hidden(self) -> None:
                pass

        @temporal_activity_registration("test.plain")
        class ActivityPlainStore(PlainStore):
            pass

        assert definition_name(ActivityPlainStore.fetch) == "test.plain.fetch"
        assert definition_name(ActivityPlainStore._hidden) is None

    def test_metadata_and_type_are_preserved(self) -> None:
        @temporal_activity_registration("test.labels")
        class ActivityLabelStore(MemoryLabelStore):
            pass

        store = ActivityLabelStore()

        assert store.get_label.__name__ == "get_label"
        assert "stored under" in (store.get_label.__doc__ or "")
        assert isinstance(store, LabelStore)
        assert isinstance(store, MemoryLabelStore)

    def test_prefixes_keep_activities_apart(self) -> None:
        @temporal_activity_registration("test.first")
        class First(MemoryLabelStore):
            pass

        @temporal_activity_registration("test.second")
        class Second(MemoryLabelStore):
            pass

        assert definition_name(First.get_label) != definition_name(
            Second.get_label
        )

    @pytest.mark.asyncio
    async def test_wrapped_methods_still_work(self) -> None:
        @temporal_activity_registration("test.labels")
        class ActivityLabelStore(MemoryLabelStore):
            pass

        store = ActivityLabelStore()

        assert await store.get_label("a") == Label(key="a", text="first")
        await store.delete_label("a")
        assert await store.list_labels() == []

    @pytest.mark.asyncio
    async def test_listed_errors_become_non_retryable(self) -> None:
        @temporal_activity_registration(
            "test.labels", error_types=(StoreError,)
        )
        class ActivityLabelStore(MemoryLabelStore):
            pass

        with pytest.raises(ApplicationError) as exc_info:
            await ActivityLabelStore().get_label("broken")

        error = exc_info.value
        assert error.non_retryable
        assert error.type == "StoreError"
        assert error.details[0] == {"status_code": 503}
        assert isinstance(error.__cause__, StoreError)

    @pytest.mark.asyncio
    async def test_other_errors_propagate_unchanged(self) -> None:
        @temporal_activity_registration(
            "test.labels", error_types=(StoreError,)
        )
        class ActivityLabelStore(MemoryLabelStore):
            pass

        with pytest.raises(RuntimeError, match="unexpected"):
            await ActivityLabelStore().get_label("crash")


@temporal_workflow_proxy("test.labels", default_timeout_seconds=45)
class WorkflowLabelStoreProxy(LabelStore):
    pass


@temporal_workflow_proxy("test.labels", raise_as=StoreError)
class RaisingLabelStoreProxy(LabelStore):
    pass


class TestWorkflowProxy:
    @pytest.mark.asyncio
    async def test_calls_activity_once_with_positional_args(self) -> None:
        with patch(
            "temporalio.workflow.execute_activity",
            new=AsyncMock(return_value={"key": "a", "text": "first"}),
        ) as execute:
            label = await WorkflowLabelStoreProxy().get_label("a")

        assert label == Label(key="a", text="first")
        execute.assert_awaited_once_with(
            "test.labels.get_label",
            args=["a"],
            start_to_close_timeout=timedelta(seconds=45),
            retry_policy=SINGLE_ATTEMPT_RETRY_POLICY,
        )

    @pytest.mark.asyncio
    async def test_results_are_validated_into_return_type(self) -> None:
        with patch(
            "temporalio.workflow.execute_activity",
            new=AsyncMock(return_value=[{"key": "b", "text": "second"}]),
        ):
            labels = await WorkflowLabelStoreProxy().list_labels()

        assert labels == [Label(key="b", text="second")]

    @pytest.mark.asyncio
    async def test_none_passes_through(self) -> None:
        with patch(
            "temporalio.workflow.execute_activity",
            new=AsyncMock(return_value=None),
        ):
            assert await WorkflowLabelStoreProxy().get_label("zz") is None
            assert await WorkflowLabelStoreProxy().delete_label("zz") is None

    @pytest.mark.asyncio
    async def test_keyword_arguments_are_rejected(self) -> None:
        with pytest.raises(ValueError, match="kwargs not supported"):
            await WorkflowLabelStoreProxy().get_label(key="a")

    def test_proxy_carries_single_attempt_policy(self) -> None:
        proxy = WorkflowLabelStoreProxy()

        assert proxy.retry_policy.maximum_attempts == 1
        assert proxy.activity_timeout == timedelta(seconds=45)
        assert isinstance(proxy, LabelStore)

    @pytest.mark.asyncio
    async def test_failure_is_reraised_as_given_type(self) -> None:
        cause = ApplicationError(
            "store unavailable",
            {"status_code": 503},
            type="StoreError",
            non_retryable=True,
        )
        with patch(
            "temporalio.workflow.execute_activity",
            new=AsyncMock(side_effect=activity_failure(cause)),
        ):
            with pytest.raises(StoreError) as exc_info:
                await RaisingLabelStoreProxy().get_label("a")

        assert exc_info.value.status_code == 503
        assert "test.labels.get_label failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_failure_without_details(self) -> None:
        with patch(
            "temporalio.workflow.execute_activity",
            new=AsyncMock(
                side_effect=activity_failure(ApplicationError("timed out"))
            ),
        ):
            with pytest.raises(StoreError) as exc_info:
                await RaisingLabelStoreProxy().get_label("a")

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_failure_propagates_without_raise_as(self) -> None:
        with patch(
            "temporalio.workflow.execute_activity",
            new=AsyncMock(
                side_effect=activity_failure(ApplicationError("boom"))
            ),
        ):
            with pytest.raises(ActivityError):
                await WorkflowLabelStoreProxy().get_label("a")

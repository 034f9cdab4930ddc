"""Request Pipeline — Validator → Service → Envelope Builder for one request.

Invariants:
    - Stages run strictly in order; each is invoked at most once (no retries)
    - Every path ends in exactly one PipelineOutcome, or ClientDisconnected
      (caller gone — no envelope at all)
    - Validation failures → Validation envelope with field-level detail
    - BusinessError raised by a service → its Err (specific, safe message)
    - Any other service exception → Internal envelope with a generic message;
      details go to the log only
    - Timeout and disconnect watching apply to the service stage only
    - The pipeline holds configuration only; no per-request state on self

Design Decisions:
    - Service runs in its own task so timeout/disconnect can cancel it;
      the task is awaited after cancel so its finally/async-with blocks run
      before the outcome is returned
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from boundary.core.domain_types import ErrorKind
from boundary.core.endpoint import Endpoint, RequestContext
from boundary.core.envelope import ResponseEnvelope, build_envelope
from boundary.core.errors import (
    INTERNAL_ERROR_MESSAGE,
    BusinessError,
    ClientDisconnected,
    ErrorContext,
    SchemaValidationError,
    ServiceTimeoutError,
    UnrecoverableError,
)
from boundary.core.result import Err, Ok, ServiceResult, is_service_result
from boundary.core.schema import ValidatedInput, validate

logger = logging.getLogger(__name__)

DisconnectProbe = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class PipelineOutcome:
    """Terminal state of one request: transport status + envelope."""
    status_code: int
    envelope: ResponseEnvelope
    error_kind: ErrorKind | None = None


class RequestPipeline:
    """Runs one endpoint for one request. Safe to share across concurrent requests."""

    def __init__(
        self,
        service_timeout_seconds: float | None = None,
        disconnect_poll_seconds: float = 0.25,
    ):
        self._service_timeout = service_timeout_seconds
        self._poll_seconds = disconnect_poll_seconds

    async def handle(
        self,
        endpoint: Endpoint,
        raw_input: Any,
        context: RequestContext | None = None,
        is_disconnected: DisconnectProbe | None = None,
    ) -> PipelineOutcome:
        """Run Received → Validated → Serviced and return the outcome."""
        context = context or RequestContext.new(endpoint.name)
        started = time.perf_counter()
        result = await self._run(endpoint, raw_input, context, is_disconnected)
        return self._finish(endpoint, result, context, started)

    def reject(
        self,
        endpoint: Endpoint,
        error: SchemaValidationError,
        context: RequestContext,
    ) -> PipelineOutcome:
        """Outcome for input the transport could not even decode (e.g. malformed JSON)."""
        started = time.perf_counter()
        _log_validation_failure(endpoint, error, context)
        return self._finish(
            endpoint, Err(ErrorKind.VALIDATION, error.message), context, started,
        )

    def _finish(
        self,
        endpoint: Endpoint,
        result: ServiceResult,
        context: RequestContext,
        started: float,
    ) -> PipelineOutcome:
        outcome = PipelineOutcome(
            status_code=endpoint.status_for(result),
            envelope=build_envelope(result),
            error_kind=None if isinstance(result, Ok) else result.kind,
        )
        logger.info(
            f"{endpoint.name} -> {outcome.status_code}",
            extra={
                **context.log_extra(),
                "status_code": outcome.status_code,
                "error_kind": (
                    outcome.error_kind.value if outcome.error_kind else None
                ),
                "duration_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return outcome

    async def _run(
        self,
        endpoint: Endpoint,
        raw_input: Any,
        context: RequestContext,
        is_disconnected: DisconnectProbe | None,
    ) -> ServiceResult:
        # Stage 1: Received → Validated
        try:
            validated = validate(endpoint.schema, raw_input)
        except SchemaValidationError as exc:
            _log_validation_failure(endpoint, exc, context)
            return Err(ErrorKind.VALIDATION, exc.message)

        # Stage 2: Validated → Serviced
        try:
            result = await self._invoke(endpoint, validated, is_disconnected)
        except ClientDisconnected:
            logger.info(
                f"Client disconnected during {endpoint.name}",
                extra=context.log_extra(),
            )
            raise
        except BusinessError as exc:
            logger.info(
                f"Business error in {endpoint.name}: {exc.message}",
                extra={**context.log_extra(), "error_code": exc.code},
            )
            return Err(exc.kind, exc.public_message)
        except UnrecoverableError as exc:
            exc.context = _error_context(context, exc.context)
            logger.error(
                f"Unrecoverable error in {endpoint.name}: {exc.message}",
                extra=exc.to_log_extra(), exc_info=True,
            )
            return Err(exc.kind, exc.public_message)
        except Exception as exc:
            logger.error(
                f"Unhandled service fault in {endpoint.name}: {exc}",
                extra=context.log_extra(), exc_info=True,
            )
            return Err(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)

        if not is_service_result(result):
            logger.error(
                f"{endpoint.name} returned {type(result).__name__}, "
                "expected Ok or Err",
                extra=context.log_extra(),
            )
            return Err(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)
        if isinstance(result, Err) and result.kind is ErrorKind.INTERNAL:
            if result.message != INTERNAL_ERROR_MESSAGE:
                logger.error(
                    f"{endpoint.name} reported internal error: {result.message}",
                    extra=context.log_extra(),
                )
            return Err(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)
        return result

    async def _invoke(
        self,
        endpoint: Endpoint,
        validated: ValidatedInput,
        is_disconnected: DisconnectProbe | None,
    ) -> Any:
        timeout = (
            endpoint.timeout_seconds
            if endpoint.timeout_seconds is not None
            else self._service_timeout
        )
        service = asyncio.ensure_future(
            _call_operation(endpoint, validated),
        )
        watcher = (
            asyncio.ensure_future(self._watch_disconnect(is_disconnected))
            if is_disconnected is not None else None
        )
        waiting = {service} if watcher is None else {service, watcher}
        try:
            done, _ = await asyncio.wait(
                waiting, timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if watcher is not None:
                await _cancel_and_wait(watcher)
            if not service.done():
                await _cancel_and_wait(service)

        if service in done:
            return service.result()
        if watcher is not None and watcher in done:
            watcher.result()
            raise ClientDisconnected()
        raise ServiceTimeoutError(timeout)

    async def _watch_disconnect(self, is_disconnected: DisconnectProbe) -> None:
        while True:
            await asyncio.sleep(self._poll_seconds)
            if await is_disconnected():
                return


def _log_validation_failure(
    endpoint: Endpoint, error: SchemaValidationError, context: RequestContext,
) -> None:
    logger.warning(
        f"Validation failed for {endpoint.name}: {error.message}",
        extra={**context.log_extra(), "error_code": error.code},
    )


async def _call_operation(endpoint: Endpoint, validated: ValidatedInput) -> Any:
    result = endpoint.operation(validated)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _cancel_and_wait(task: asyncio.Future) -> None:
    """Cancel task and wait until it has unwound."""
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


def _error_context(
    context: RequestContext, existing: ErrorContext,
) -> ErrorContext:
    existing.request_id = existing.request_id or context.request_id
    existing.endpoint = existing.endpoint or context.endpoint
    return existing

"""
Failure classification for remote completion calls.

The matcher table is an ordered tuple: the first predicate that accepts a
failure decides its category, so reordering entries changes behaviour.
"""
import asyncio
import errno
import re
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional, Tuple

import httpx


class ErrorType(str, Enum):
    CONNECTION_RESET = "CONNECTION_RESET"
    DNS_ERROR = "DNS_ERROR"
    TIMEOUT = "TIMEOUT"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    NETWORK_UNREACHABLE = "NETWORK_UNREACHABLE"
    CONNECTION_ABORTED = "CONNECTION_ABORTED"
    RATE_LIMIT = "RATE_LIMIT"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"
    CLIENT_ERROR = "CLIENT_ERROR"
    OUTPUT_TOO_LONG = "OUTPUT_TOO_LONG"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Failures that bisecting the input can plausibly work around
CONNECTION_CLASS_ERRORS = frozenset({
    ErrorType.CONNECTION_RESET,
    ErrorType.TIMEOUT,
    ErrorType.CONNECTION_REFUSED,
    ErrorType.CONNECTION_ABORTED,
    ErrorType.NETWORK_ERROR,
})


@dataclass(frozen=True)
class ErrorClassification:
    """Verdict for a single failure."""
    error_type: ErrorType
    suggestion: str
    action: str
    should_retry: bool
    reason: str


@dataclass(frozen=True)
class FailureSignature:
    """The parts of a failure the matchers look at."""
    message: str
    status_code: Optional[int]
    transport_code: Optional[str]


RetryPolicy = Callable[[int, int], bool]
Predicate = Callable[[FailureSignature], bool]


@dataclass(frozen=True)
class ErrorMatcher:
    error_type: ErrorType
    predicate: Predicate
    retry_policy: RetryPolicy
    suggestion: str
    action: str


def _always(attempt: int, max_attempts: int) -> bool:
    return True


def _never(attempt: int, max_attempts: int) -> bool:
    return False


def _first_attempts(limit: int) -> RetryPolicy:
    def policy(attempt: int, max_attempts: int) -> bool:
        return attempt <= limit
    return policy


def _has_code(*codes: str) -> Predicate:
    return lambda sig: sig.transport_code in codes


def _has_status(status: int) -> Predicate:
    return lambda sig: sig.status_code == status


_AUTH_FAILURE_PATTERN = re.compile(
    r"authentication\s*(?:fail|error)|invalid\s*api\s*key|incorrect\s*api\s*key|api\s*key\s*(?:is\s*)?invalid",
    re.IGNORECASE,
)
_ERRNO_PATTERN = re.compile(r"\[Errno (-?\d+)\]")
_DNS_TEXT_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
)


def is_output_too_long(message: str) -> bool:
    """
    Best-effort detection of a truncated / token-limited reply.

    This is a wording heuristic over the error text; a service that rephrases
    its error can slip past it.
    """
    text = message.lower()
    return (
        ("output" in text and "too long" in text)
        or ("length" in text and "limit" in text)
        or ("token" in text and "limit" in text)
        or "max_tokens" in text
    )


def _is_auth_failure(sig: FailureSignature) -> bool:
    return sig.status_code == 401 or bool(_AUTH_FAILURE_PATTERN.search(sig.message))


def _is_server_error(sig: FailureSignature) -> bool:
    return sig.status_code is not None and sig.status_code >= 500


def _is_client_error(sig: FailureSignature) -> bool:
    return sig.status_code is not None and 400 <= sig.status_code < 500


def _is_truncated_output(sig: FailureSignature) -> bool:
    return is_output_too_long(sig.message)


def _is_invalid_response(sig: FailureSignature) -> bool:
    return "invalid completion payload" in sig.message.lower()


def _mentions_network(sig: FailureSignature) -> bool:
    text = sig.message.lower()
    return "network" in text or "connection" in text


ERROR_MATCHERS: Tuple[ErrorMatcher, ...] = (
    ErrorMatcher(
        ErrorType.CONNECTION_RESET, _has_code("ECONNRESET"), _always,
        "The connection was reset, usually by an unstable network or an overloaded server.",
        "Retry later or check the network connection.",
    ),
    ErrorMatcher(
        ErrorType.DNS_ERROR, lambda sig: (sig.transport_code or "").startswith("EAI_"), _always,
        "The API host name could not be resolved.",
        "Check the network connection or switch DNS servers.",
    ),
    ErrorMatcher(
        ErrorType.TIMEOUT, _has_code("ETIMEDOUT"), _always,
        "The request timed out; network latency is high or the server is slow.",
        "Retry later or raise the request timeout.",
    ),
    ErrorMatcher(
        ErrorType.CONNECTION_REFUSED, _has_code("ECONNREFUSED"), _always,
        "The API server refused the connection.",
        "Check the API URL and whether the service is up.",
    ),
    ErrorMatcher(
        ErrorType.NETWORK_UNREACHABLE, _has_code("ENETUNREACH"), _never,
        "The network is unreachable from this host.",
        "Check network configuration, proxies and firewall rules.",
    ),
    ErrorMatcher(
        ErrorType.CONNECTION_ABORTED, _has_code("ECONNABORTED"), _always,
        "The connection was aborted before the reply arrived.",
        "Retry later.",
    ),
    ErrorMatcher(
        ErrorType.RATE_LIMIT, _has_status(429), _first_attempts(2),
        "The API rate limit was exceeded.",
        "Lower the request rate or wait before retrying.",
    ),
    ErrorMatcher(
        ErrorType.AUTHENTICATION_ERROR, _is_auth_failure, _never,
        "The API key is invalid or has expired.",
        "Check the API key configuration.",
    ),
    ErrorMatcher(
        ErrorType.AUTHORIZATION_ERROR, _has_status(403), _never,
        "The API key is not allowed to use this resource.",
        "Check account permissions and model access.",
    ),
    ErrorMatcher(
        ErrorType.NOT_FOUND, _has_status(404), _never,
        "The API endpoint or model was not found.",
        "Check the API URL and model name.",
    ),
    ErrorMatcher(
        ErrorType.SERVER_ERROR, _is_server_error, _always,
        "The AI service reported an internal error.",
        "Retry later; the service is temporarily unavailable.",
    ),
    ErrorMatcher(
        ErrorType.CLIENT_ERROR, _is_client_error, _never,
        "The request was rejected as invalid.",
        "Check request parameters and input size.",
    ),
    ErrorMatcher(
        ErrorType.OUTPUT_TOO_LONG, _is_truncated_output, _never,
        "The reply hit the output token limit and was truncated.",
        "Send a shorter input.",
    ),
    ErrorMatcher(
        ErrorType.INVALID_RESPONSE, _is_invalid_response, _first_attempts(2),
        "The reply did not contain any generated content.",
        "Retry; if it persists check the model configuration.",
    ),
    ErrorMatcher(
        ErrorType.NETWORK_ERROR, _mentions_network, _always,
        "A network problem prevented reaching the AI service.",
        "Check the network connection and retry.",
    ),
    ErrorMatcher(
        ErrorType.UNKNOWN_ERROR, lambda sig: True, _first_attempts(1),
        "An unrecognised error occurred.",
        "Check the detailed logs.",
    ),
)


def _exception_chain(error: BaseException) -> Iterator[BaseException]:
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def transport_code(error: BaseException) -> Optional[str]:
    """Derive an errno-style transport code from an exception chain."""
    for exc in _exception_chain(error):
        code = getattr(exc, "code", None)
        if isinstance(code, str) and code.startswith("E"):
            return code
        if isinstance(exc, socket.gaierror):
            return "EAI_NONAME"
        if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, socket.timeout)):
            return "ETIMEDOUT"
        if isinstance(exc, httpx.RemoteProtocolError):
            return "ECONNRESET"
        if isinstance(exc, OSError) and exc.errno in errno.errorcode:
            return errno.errorcode[exc.errno]

    message = str(error)
    lowered = message.lower()
    if any(marker in lowered for marker in _DNS_TEXT_MARKERS):
        return "EAI_NONAME"
    match = _ERRNO_PATTERN.search(message)
    if match and int(match.group(1)) in errno.errorcode:
        return errno.errorcode[int(match.group(1))]
    return None


def status_code(error: BaseException) -> Optional[int]:
    """HTTP status carried by the failure, if any."""
    for exc in _exception_chain(error):
        status = getattr(exc, "status_code", None)
        if isinstance(status, int):
            return status
        response = getattr(exc, "response", None)
        if isinstance(getattr(response, "status_code", None), int):
            return response.status_code
    return None


def signature(error: BaseException) -> FailureSignature:
    return FailureSignature(
        message=str(error),
        status_code=status_code(error),
        transport_code=transport_code(error),
    )


def classify(error: BaseException, attempt: int = 1, max_attempts: int = 1) -> ErrorClassification:
    """
    Classify a failure.

    Args:
        error: The exception raised by the remote call
        attempt: 1-based number of the attempt that failed
        max_attempts: Total attempts allowed for the call

    Returns:
        The classification of the first matching entry in ERROR_MATCHERS
    """
    sig = signature(error)
    for matcher in ERROR_MATCHERS:
        if matcher.predicate(sig):
            return ErrorClassification(
                error_type=matcher.error_type,
                suggestion=matcher.suggestion,
                action=matcher.action,
                should_retry=matcher.retry_policy(attempt, max_attempts),
                reason=_describe(sig),
            )
    raise AssertionError("ERROR_MATCHERS must end with a catch-all entry")


def _describe(sig: FailureSignature) -> str:
    parts = []
    if sig.status_code is not None:
        parts.append(f"status={sig.status_code}")
    if sig.transport_code:
        parts.append(f"code={sig.transport_code}")
    parts.append(sig.message[:200])
    return " ".join(parts)

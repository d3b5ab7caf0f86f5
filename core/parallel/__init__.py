"""
core/parallel - AWS client 생성, 재시도, 취소 처리

Example:
    from core.parallel import CancellationToken, create_session, get_client

    session = create_session(profile="dev", region="ap-northeast-2")
    ec2 = get_client(session, "ec2")
"""

from .cancel import CancellationToken, cancel_on_signals
from .client import create_session, get_cleanup_client, get_client
from .decorators import RetryConfig, call_with_retry, get_error_code, is_retryable

__all__ = [
    "CancellationToken",
    "cancel_on_signals",
    "create_session",
    "get_client",
    "get_cleanup_client",
    "RetryConfig",
    "call_with_retry",
    "get_error_code",
    "is_retryable",
]

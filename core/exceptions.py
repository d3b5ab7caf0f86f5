"""
core/exceptions.py - 통합 예외 계층 구조

진단 실행 전체에서 사용되는 예외 클래스들을 정의합니다.

예외 계층 구조:
    AAError (베이스)
    ├── PreconditionError (리소스 생성 전 검증 실패)
    ├── ValidationError (입력 검증)
    ├── APICallError (AWS API 호출 실패)
    ├── IPRangesUnavailableError (AWS IP 대역 문서 조회 불가)
    └── ScanError (진단 실행 단계 오류, phase 포함)
        ├── ResourceCreationError
        ├── ActivationTimeoutError
        ├── QueryError
        ├── ScanCancelledError
        ├── CleanupError
        └── ScanFailedError (최종 오류, 정리 결과 포함)

Usage:
    from core.exceptions import APICallError

    try:
        ec2.create_flow_logs(...)
    except ClientError as e:
        raise APICallError.from_client_error("ec2", "create_flow_logs", e) from e
"""

from __future__ import annotations

from typing import Any

# =============================================================================
# 베이스 예외
# =============================================================================


class AAError(Exception):
    """기본 예외 클래스

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


class PreconditionError(AAError):
    """과금 리소스 생성 전에 확인되는 전제 조건 실패

    Attributes:
        hint: 사용자에게 보여줄 해결 방법
    """

    def __init__(
        self,
        message: str,
        hint: str = "",
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.hint = hint
        if hint:
            self.details["hint"] = hint


class ValidationError(AAError):
    """입력 검증 오류"""

    def __init__(
        self,
        field: str,
        value: Any,
        expected: str,
        cause: Exception | None = None,
    ):
        message = f"검증 오류 [{field}]: 예상값 '{expected}', 실제값 '{value}'"
        super().__init__(message, cause)
        self.field = field
        self.value = value
        self.expected = expected
        self.details.update(
            {
                "field": field,
                "value": str(value),
                "expected": expected,
            }
        )


class APICallError(AAError):
    """AWS API 호출 관련 예외

    boto3/botocore의 ClientError를 래핑하여 일관된 예외 처리를 제공합니다.
    """

    def __init__(
        self,
        service: str,
        operation: str,
        error_code: str | None = None,
        error_message: str | None = None,
        cause: Exception | None = None,
    ):
        message = f"{service}.{operation}"
        if error_code:
            message = f"{message} 실패 ({error_code})"
        if error_message:
            message = f"{message}: {error_message}"

        super().__init__(message, cause)
        self.service = service
        self.operation = operation
        self.error_code = error_code
        self.error_message = error_message
        self.details.update(
            {
                "service": service,
                "operation": operation,
                "error_code": error_code,
            }
        )

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_client_error(
        cls,
        service: str,
        operation: str,
        client_error: Exception,
    ) -> APICallError:
        """botocore 예외로부터 생성

        Args:
            service: AWS 서비스 이름
            operation: API 작업 이름
            client_error: ClientError 또는 BotoCoreError

        Returns:
            APICallError 인스턴스
        """
        error_code = None
        error_message = None

        if hasattr(client_error, "response"):
            error_info = client_error.response.get("Error", {})
            error_code = error_info.get("Code")
            error_message = error_info.get("Message")
        else:
            error_message = str(client_error)

        return cls(
            service=service,
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            cause=client_error,
        )


class IPRangesUnavailableError(AAError):
    """AWS IP 대역 문서를 가져올 수 없고 캐시도 없는 경우"""

    def __init__(self, url: str, cause: Exception | None = None):
        super().__init__(f"AWS IP 대역 문서 조회 실패 ({url})", cause)
        self.url = url
        self.details["url"] = url


# =============================================================================
# 진단 실행 관련 예외
# =============================================================================


class ScanError(AAError):
    """진단 실행 중 발생한 오류. 발생 단계(phase)를 함께 기록합니다."""

    def __init__(
        self,
        message: str,
        phase: str = "",
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.phase = phase
        if phase:
            self.details["phase"] = phase


class ResourceCreationError(ScanError):
    """Flow Log 또는 로그 그룹 생성 실패"""

    def __init__(
        self,
        resource: str,
        message: str,
        cause: Exception | None = None,
    ):
        super().__init__(f"리소스 생성 실패 [{resource}]: {message}", phase="CREATE_RESOURCES", cause=cause)
        self.resource = resource
        self.details["resource"] = resource


class ActivationTimeoutError(ScanError):
    """Flow Log가 제한 시간 안에 활성화되지 않음"""

    def __init__(self, flow_log_ids: list[str], timeout_seconds: float):
        super().__init__(
            f"Flow Log 활성화 대기 시간 초과 ({int(timeout_seconds)}초): {', '.join(flow_log_ids)}",
            phase="AWAIT_ACTIVATION",
        )
        self.flow_log_ids = list(flow_log_ids)
        self.timeout_seconds = timeout_seconds
        self.details["flow_log_ids"] = self.flow_log_ids


class QueryError(ScanError):
    """CloudWatch Logs Insights 쿼리 실패"""

    def __init__(
        self,
        query_id: str,
        status: str,
        cause: Exception | None = None,
    ):
        super().__init__(f"로그 쿼리 실패 [{query_id}]: {status}", phase="ANALYZE", cause=cause)
        self.query_id = query_id
        self.status = status
        self.details.update({"query_id": query_id, "status": status})


class ScanCancelledError(ScanError):
    """사용자 인터럽트 또는 신호로 진단이 취소됨"""

    def __init__(self, phase: str = ""):
        super().__init__("진단이 취소되었습니다", phase=phase)


class CleanupError(ScanError):
    """임시 리소스 정리 실패"""

    def __init__(
        self,
        resource: str,
        message: str,
        cause: Exception | None = None,
    ):
        super().__init__(f"정리 실패 [{resource}]: {message}", phase="STOP_RESOURCES", cause=cause)
        self.resource = resource
        self.details["resource"] = resource


class ScanFailedError(ScanError):
    """진단 실행의 최종 오류

    원래 오류(cause)는 유지되고, 정리 중 발생한 오류는 cleanup_errors에 추가됩니다.

    Attributes:
        cleanup_errors: 정리 단계에서 발생한 오류 목록
        retained_log_group: 정리되지 않고 남은 로그 그룹 이름
    """

    def __init__(
        self,
        phase: str,
        cause: Exception,
        cleanup_errors: list[Exception] | None = None,
        retained_log_group: str = "",
    ):
        super().__init__(f"진단 실패 [{phase}]", phase=phase, cause=cause)
        self.cleanup_errors = list(cleanup_errors or [])
        self.retained_log_group = retained_log_group
        self.details["cleanup_errors"] = [str(e) for e in self.cleanup_errors]
        if retained_log_group:
            self.details["retained_log_group"] = retained_log_group

    @property
    def cancelled(self) -> bool:
        return isinstance(self.cause, (ScanCancelledError, KeyboardInterrupt))

    def __str__(self) -> str:
        text = super().__str__()
        if self.cleanup_errors:
            text += " (정리 오류: " + "; ".join(str(e) for e in self.cleanup_errors) + ")"
        return text


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================

ACCESS_DENIED_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedAccess",
    "UnauthorizedOperation",
}

THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
}

NOT_FOUND_CODES = {
    "ResourceNotFoundException",
    "NotFoundException",
    "NoSuchEntity",
    "InvalidFlowLogId.NotFound",
}


def _error_code(error: Exception) -> str:
    if isinstance(error, APICallError):
        return error.error_code or ""
    response = getattr(error, "response", None)
    if response is not None:
        return response.get("Error", {}).get("Code", "")
    return ""


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인"""
    return _error_code(error) in ACCESS_DENIED_CODES


def is_throttling(error: Exception) -> bool:
    """스로틀링 오류인지 확인"""
    return _error_code(error) in THROTTLING_CODES


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인"""
    code = _error_code(error)
    return code in NOT_FOUND_CODES or code.endswith(".NotFound")

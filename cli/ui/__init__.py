# cli/ui - TUI 컴포넌트 (questionary, rich)
"""
TUI 컴포넌트 모듈

CLI 전용 UI 컴포넌트들 (콘솔 출력, 진행 표시)
"""

from .console import (
    SYMBOL_ERROR,
    SYMBOL_INFO,
    SYMBOL_SUCCESS,
    SYMBOL_WARNING,
    configure_logging,
    console,
    get_console,
    get_logger,
    print_error,
    print_info,
    print_rule,
    print_success,
    print_warning,
)
from .progress import ScanProgressTracker, scan_progress

__all__ = [
    "SYMBOL_ERROR",
    "SYMBOL_INFO",
    "SYMBOL_SUCCESS",
    "SYMBOL_WARNING",
    "configure_logging",
    "console",
    "get_console",
    "get_logger",
    "print_error",
    "print_info",
    "print_rule",
    "print_success",
    "print_warning",
    "ScanProgressTracker",
    "scan_progress",
]

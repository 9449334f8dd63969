#
# src/cstest/runtime/__init__.py
#
"""
Test-run orchestration: the process supervisor and the public run service.
"""
from .facade import QUICKTEST, RANDOMTEST, ChoiceScriptTestService, quicktest_args
from .supervisor import (
    ProcessSupervisor,
    RunOutcome,
    RunState,
    TestRun,
    classify_exit,
    exit_status,
)

__all__ = [
    "QUICKTEST",
    "RANDOMTEST",
    "ChoiceScriptTestService",
    "ProcessSupervisor",
    "RunOutcome",
    "RunState",
    "TestRun",
    "classify_exit",
    "exit_status",
    "quicktest_args",
]

# 🔼⚙️

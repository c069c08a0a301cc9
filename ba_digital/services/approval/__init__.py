"""
Approval Domain Services
========================

State machine status dokumen BAPB/BAPP
"""

from .state_machine import (
    ApprovalStateMachine, Transition, TransitionResult, TRANSITIONS, MISSING_SIGNATURE_WARNING
)

__all__ = [
    'ApprovalStateMachine',
    'Transition',
    'TransitionResult',
    'TRANSITIONS',
    'MISSING_SIGNATURE_WARNING'
]

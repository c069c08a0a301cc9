"""
Payment Domain Services
=======================

Readiness pembayaran dan simulasi settlement
"""

from .payment_service import PaymentService, FAILURE_REASONS, SIMULATION_NOTE

__all__ = [
    'PaymentService',
    'FAILURE_REASONS',
    'SIMULATION_NOTE'
]

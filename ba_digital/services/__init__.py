"""
BA Digital Services Module
==========================

Services layer untuk workflow dokumen BAPB/BAPP
Menggunakan dependency injection pattern untuk service management
"""

import asyncio
import random

from .base import BaseService, json_safe, validate_input
from .exceptions import *
from .gateway import PersistenceGateway
from .roles import Action

# Documents Domain
from .documents import (
    DocumentRepository, BAPBService, BAPPService, RenditionService, KINDS
)

# Approval Domain
from .approval import ApprovalStateMachine, TransitionResult

# Attachments Domain
from .attachments import AttachmentService

# Payment Domain
from .payment import PaymentService

# Integration Domain
from .integration import NotificationService, StorageService

from ..models.enums import DocumentType

__all__ = [
    # Base Classes
    'BaseService', 'PersistenceGateway', 'json_safe', 'validate_input', 'Action',

    # Documents Domain
    'DocumentRepository', 'BAPBService', 'BAPPService', 'RenditionService',

    # Approval Domain
    'ApprovalStateMachine', 'TransitionResult',

    # Attachments Domain
    'AttachmentService',

    # Payment Domain
    'PaymentService',

    # Integration Domain
    'NotificationService', 'StorageService',

    'ServiceRegistry', 'create_service_registry'
]


class ServiceRegistry:
    """
    Service Registry untuk dependency injection
    Mengelola lifecycle dan dependencies antar services
    """

    def __init__(self, gateway: PersistenceGateway, config: dict, storage: StorageService = None,
                 renderer=None, rng: random.Random = None, sleep=asyncio.sleep):
        self.gateway = gateway
        self.config = config
        self.storage = storage or StorageService(config.get('upload_root', './uploads'))
        self.renderer = renderer
        self.rng = rng
        self.sleep = sleep
        self._services = {}

        # Initialize core services first
        self._init_core_services()

        # Initialize domain services
        self._init_domain_services()

    def _init_core_services(self):
        """Initialize core services yang diperlukan services lain"""

        # Notification Service (side effect semua transisi)
        self._services['notification'] = NotificationService(self.gateway)

        # Satu repository per tipe dokumen
        self.repositories = {
            document_type: DocumentRepository(self.gateway, kind)
            for document_type, kind in KINDS.items()
        }

        self._services['approval'] = ApprovalStateMachine(
            self.gateway,
            repositories=self.repositories,
            notification_service=self._services['notification']
        )

    def _init_domain_services(self):
        """Initialize domain services dengan dependencies"""

        # Documents Domain
        self._services['bapb'] = BAPBService(
            self.gateway,
            repository=self.repositories[DocumentType.BAPB],
            state_machine=self._services['approval'],
            storage=self.storage,
            notification_service=self._services['notification']
        )

        self._services['bapp'] = BAPPService(
            self.gateway,
            repository=self.repositories[DocumentType.BAPP],
            state_machine=self._services['approval'],
            storage=self.storage,
            notification_service=self._services['notification']
        )

        self._services['rendition'] = RenditionService(
            self.gateway,
            repositories=self.repositories,
            storage=self.storage,
            renderer=self.renderer
        )

        # Attachments Domain
        self._services['attachment'] = AttachmentService(
            self.gateway,
            repositories=self.repositories,
            storage=self.storage
        )

        # Payment Domain
        self._services['payment'] = PaymentService(
            self.gateway,
            repositories=self.repositories,
            notification_service=self._services['notification'],
            success_rate=self.config.get('payment_success_rate', 0.95),
            rng=self.rng,
            sleep=self.sleep
        )

    def document_service(self, document_type: DocumentType):
        """BAPBService atau BAPPService sesuai tipe dokumen"""
        return self._services[DocumentType(document_type).value.lower()]

    # Convenience methods untuk frequently used services
    @property
    def bapb_service(self) -> BAPBService:
        return self._services['bapb']

    @property
    def bapp_service(self) -> BAPPService:
        return self._services['bapp']

    @property
    def approval_state_machine(self) -> ApprovalStateMachine:
        """Get ApprovalStateMachine - inti workflow dokumen"""
        return self._services['approval']

    @property
    def notification_service(self) -> NotificationService:
        return self._services['notification']

    @property
    def attachment_service(self) -> AttachmentService:
        return self._services['attachment']

    @property
    def payment_service(self) -> PaymentService:
        return self._services['payment']

    @property
    def rendition_service(self) -> RenditionService:
        return self._services['rendition']


# Factory function untuk easy service registry creation
def create_service_registry(gateway: PersistenceGateway, config: dict, **kwargs) -> ServiceRegistry:
    """Factory function untuk membuat ServiceRegistry"""
    return ServiceRegistry(gateway, config, **kwargs)

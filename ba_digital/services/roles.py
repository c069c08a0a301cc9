"""
Role Capability Table
=====================

Tabel kapabilitas ``{document type -> {action -> roles}}`` yang dikonsultasikan oleh
state machine dan document services, menggantikan pengecekan string role ad hoc.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from .exceptions import AuthorizationError
from ..models.enums import Role, DocumentType


class Action(str, Enum):
    CREATE = 'create'
    UPDATE = 'update'
    DELETE = 'delete'
    SUBMIT = 'submit'
    REVIEW = 'review'              # start_review / release_review
    APPROVE = 'approve'
    REJECT = 'reject'
    REQUEST_REVISION = 'request_revision'
    SIGN = 'sign'
    PAY = 'pay'


VENDOR_ROLES: FrozenSet[Role] = frozenset({Role.VENDOR, Role.VENDOR_BARANG, Role.VENDOR_JASA})

_BAPB_MANAGERS = frozenset({Role.VENDOR_BARANG, Role.VENDOR, Role.ADMIN})
_BAPB_REVIEWERS = frozenset({Role.PIC_GUDANG, Role.APPROVER, Role.ADMIN})

_BAPP_MANAGERS = frozenset({Role.VENDOR_JASA, Role.VENDOR, Role.ADMIN})
_BAPP_REVIEWERS = frozenset({Role.APPROVER, Role.ADMIN})

_PAYERS = frozenset({Role.ADMIN, Role.APPROVER})


def _capabilities(managers: FrozenSet[Role], reviewers: FrozenSet[Role]) -> Dict[Action, FrozenSet[Role]]:
    return {
        Action.CREATE: managers,
        Action.UPDATE: managers,
        Action.DELETE: managers,
        Action.SUBMIT: managers,
        Action.REVIEW: reviewers,
        Action.APPROVE: reviewers,
        Action.REJECT: reviewers,
        Action.REQUEST_REVISION: reviewers,
        Action.SIGN: managers | reviewers,
        Action.PAY: _PAYERS,
    }


CAPABILITIES: Dict[DocumentType, Dict[Action, FrozenSet[Role]]] = {
    DocumentType.BAPB: _capabilities(_BAPB_MANAGERS, _BAPB_REVIEWERS),
    DocumentType.BAPP: _capabilities(_BAPP_MANAGERS, _BAPP_REVIEWERS),
}

# Role yang di-pin ke field primary reviewer saat approve pertama kali
PRIMARY_REVIEWER_ROLE: Dict[DocumentType, Role] = {
    DocumentType.BAPB: Role.PIC_GUDANG,
    DocumentType.BAPP: Role.APPROVER,
}


def parse_role(value: Any) -> Optional[Role]:
    """Konversi string role dari store ke Role; None jika tidak dikenal"""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def roles_for(document_type: DocumentType, action: Action) -> FrozenSet[Role]:
    return CAPABILITIES[DocumentType(document_type)][action]


def can(role: Any, document_type: DocumentType, action: Action) -> bool:
    parsed = parse_role(role)
    return parsed is not None and parsed in roles_for(document_type, action)


def require(user: Dict[str, Any], document_type: DocumentType, action: Action) -> Role:
    """Raise AuthorizationError jika role user tidak punya kapabilitas untuk action ini"""
    role = parse_role(user.get('role'))
    allowed = roles_for(document_type, action)
    if role is None or role not in allowed:
        label = DocumentType(document_type).value
        raise AuthorizationError(
            f"Role '{user.get('role')}' is not allowed to {action.value.replace('_', ' ')} {label}",
            required_role=sorted(r.value for r in allowed)
        )
    return role


def is_vendor(role: Any) -> bool:
    return parse_role(role) in VENDOR_ROLES


def is_primary_reviewer(role: Any, document_type: DocumentType) -> bool:
    return parse_role(role) == PRIMARY_REVIEWER_ROLE[DocumentType(document_type)]

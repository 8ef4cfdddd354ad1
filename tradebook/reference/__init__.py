"""tradebook.reference — reference data gateway protocol and in-memory gateway."""

from tradebook.reference.gateway import ACTIVATABLE_KINDS as ACTIVATABLE_KINDS
from tradebook.reference.gateway import ReferenceDataGateway as ReferenceDataGateway
from tradebook.reference.gateway import ReferenceDataUnavailable as ReferenceDataUnavailable
from tradebook.reference.gateway import ReferenceKind as ReferenceKind
from tradebook.reference.memory import InMemoryReferenceData as InMemoryReferenceData

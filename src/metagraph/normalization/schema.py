"""Canonical entity definitions produced by the metadata normalizers.

Every entity is a plain dataclass keyed by an opaque string ``id``. The
``entity_type`` class attribute names the table (or bucket) the entity is
persisted under; field names double as column names.
"""

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, List, Optional


@dataclass
class Entity:
    """Base class for every persisted entity."""

    entity_type: ClassVar[str] = ""

    id: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the entity to a JSON-safe dictionary."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Descriptions (one per document category)
# ---------------------------------------------------------------------------


@dataclass
class ServiceDescription(Entity):
    """Metadata describing a service request."""

    entity_type: ClassVar[str] = "service_descriptions"

    service: str = ""
    title: Optional[str] = None
    about: Optional[str] = None
    start_date: Optional[int] = None
    expected_end_date: Optional[int] = None
    keywords_raw: Optional[str] = None
    keywords: Optional[List[str]] = None
    rate_token: Optional[str] = None
    rate_amount: Optional[str] = None
    video_url: Optional[str] = None


@dataclass
class ProposalDescription(Entity):
    """Metadata describing a proposal made on a service."""

    entity_type: ClassVar[str] = "proposal_descriptions"

    proposal: str = ""
    start_date: Optional[int] = None
    about: Optional[str] = None
    expected_hours: Optional[int] = None
    video_url: Optional[str] = None


@dataclass
class ReviewDescription(Entity):
    entity_type: ClassVar[str] = "review_descriptions"

    review: str = ""
    content: Optional[str] = None


@dataclass
class UserDescription(Entity):
    """Subject profile, including the credentials issued about the user.

    Attributes:
        user: Identifier of the user this profile describes.
        skills_raw: Lower-cased free-text skills as supplied.
        skills: Keyword ids, only populated when tokenization is enabled.
        credentials: Ordered ids of the credentials that survived validation.
            ``None`` when the document carried no ``credentials`` array.
        web3mail_preferences: Id of the preferences entity, when present.
    """

    entity_type: ClassVar[str] = "user_descriptions"

    user: str = ""
    title: Optional[str] = None
    about: Optional[str] = None
    skills_raw: Optional[str] = None
    skills: Optional[List[str]] = None
    credentials: Optional[List[str]] = None
    timezone: Optional[int] = None
    headline: Optional[str] = None
    country: Optional[str] = None
    role: Optional[str] = None
    name: Optional[str] = None
    video_url: Optional[str] = None
    image_url: Optional[str] = None
    web3mail_preferences: Optional[str] = None


@dataclass
class PlatformDescription(Entity):
    entity_type: ClassVar[str] = "platform_descriptions"

    platform: str = ""
    about: Optional[str] = None
    website: Optional[str] = None
    video_url: Optional[str] = None
    image_url: Optional[str] = None


@dataclass
class EvidenceDescription(Entity):
    """Metadata describing a file submitted as dispute evidence."""

    entity_type: ClassVar[str] = "evidence_descriptions"

    evidence: str = ""
    file_uri: Optional[str] = None
    file_hash: Optional[str] = None
    file_type_extension: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None


# ---------------------------------------------------------------------------
# Credential graph
# ---------------------------------------------------------------------------


@dataclass
class Credential(Entity):
    """Third-party assertion about a user.

    Attributes:
        issue_time: Issue timestamp, constrained to a signed 32-bit integer.
        expiry_time: Expiry timestamp, constrained to a signed 32-bit integer.
        claims_encrypted: Id of the :class:`ClaimsEncrypted` payload, if any.
        claims: Ordered :class:`Claim` ids, ``None`` when no claims array was given.
    """

    entity_type: ClassVar[str] = "credentials"

    author: str = ""
    platform: str = ""
    description: str = ""
    issue_time: int = 0
    expiry_time: int = 0
    user_address: str = ""
    claims_encrypted: Optional[str] = None
    claims: Optional[List[str]] = None


@dataclass
class CredentialWrapper(Entity):
    """Issuer envelope around a :class:`Credential`; shares its id."""

    entity_type: ClassVar[str] = "credential_wrappers"

    credential: str = ""
    issuer: str = ""
    signature1: str = ""
    signature2: str = ""


@dataclass
class Claim(Entity):
    entity_type: ClassVar[str] = "claims"

    platform: str = ""
    criteria: str = ""
    condition: str = ""
    value: str = ""


@dataclass
class ClaimsEncrypted(Entity):
    entity_type: ClassVar[str] = "claims_encrypted"

    cipher_text: str = ""
    access_control_condition: str = ""


@dataclass
class UserWeb3mailPreferences(Entity):
    """Notification opt-ins. Defaults apply to each flag independently."""

    entity_type: ClassVar[str] = "user_web3mail_preferences"

    active_on_new_service: bool = False
    active_on_new_proposal: bool = True
    active_on_proposal_validated: bool = True
    active_on_fund_release: bool = True
    active_on_review: bool = True
    active_on_platform_marketing: bool = False
    active_on_protocol_marketing: bool = False


@dataclass
class Keyword(Entity):
    """Normalized keyword or skill; the id is the normalized text itself."""

    entity_type: ClassVar[str] = "keywords"

    text: str = ""


ENTITY_TYPES: Dict[str, type] = {
    cls.entity_type: cls
    for cls in (
        ServiceDescription,
        ProposalDescription,
        ReviewDescription,
        UserDescription,
        PlatformDescription,
        EvidenceDescription,
        Credential,
        CredentialWrapper,
        Claim,
        ClaimsEncrypted,
        UserWeb3mailPreferences,
        Keyword,
    )
}

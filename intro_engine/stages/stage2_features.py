"""
Stage 2: Contact Feature Building
=================================
Derives the per-contact features every scorer reads:
- tag set (theses, contact type labels, investor flag, vocabulary hits)
- lower-cased searchable profile text
- normalized bio / thesis embeddings
"""

from typing import List, Dict, Optional

from ..models.schemas import Contact, ContactFeatures
from ..config.settings import INVESTMENT_TERMS
from .stage1_normalize import normalize_embedding


def build_contact_tags(contact: Contact, vocabulary: Optional[List[str]] = None) -> List[str]:
    """Tag set for a contact, in first-seen order"""
    vocabulary = vocabulary if vocabulary is not None else INVESTMENT_TERMS
    tags: List[str] = []

    for thesis in contact.theses:
        tags.extend(thesis.sectors)
        tags.extend(thesis.stages)
        tags.extend(thesis.geos)

    tags.extend(contact.contact_type)
    if contact.is_investor:
        tags.append("investor")

    profile_text = " ".join(
        part for part in (contact.bio, contact.title, contact.investor_notes) if part
    ).lower()
    for term in vocabulary:
        if term in profile_text:
            tags.append(term)

    return list(dict.fromkeys(t for t in tags if t))


def build_contact_text(contact: Contact) -> str:
    """Lower-cased text searched by the semantic scorer"""
    return " ".join([
        contact.bio or "",
        contact.title or "",
        contact.investor_notes or "",
        contact.company or "",
    ]).lower()


class ContactFeatureStage:
    """
    Stage 2: Build ContactFeatures for every contact in the run.
    """

    def __init__(self, vocabulary: Optional[List[str]] = None):
        self.vocabulary = vocabulary or INVESTMENT_TERMS

    def process(self, contacts: List[Contact]) -> Dict[str, ContactFeatures]:
        """
        Build features for all contacts.

        Returns:
            Mapping of contact id to ContactFeatures, in input order
        """
        return {contact.id: self.build(contact) for contact in contacts}

    def build(self, contact: Contact) -> ContactFeatures:
        return ContactFeatures(
            contact=contact,
            tags=build_contact_tags(contact, self.vocabulary),
            text=build_contact_text(contact),
            bio_embedding=normalize_embedding(contact.bio_embedding),
            thesis_embedding=normalize_embedding(contact.thesis_embedding),
        )

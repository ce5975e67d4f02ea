"""Тесты builders для permissioned domains."""

import pytest

from src.builders import MAX_ACCEPTED_CREDENTIALS, build_domain_delete, build_domain_set
from src.core.domain import CredentialRequirement
from src.core.errors import ValidationError

OWNER = "rPT1Sjq2YGrBMTttX4GZHjKu9dyfzbpAYe"
KYC_ISSUER = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"
AML_ISSUER = "rsA2LpzuawewSBQXkiju3YQTMzW13pAAdW"
DOMAIN_ID = "0123456789ABCDEF" * 4


class TestDomainSet:
    """SetDomainPolicy — полная замена набора."""

    def test_create_domain(self):
        payload = build_domain_set(OWNER, [(KYC_ISSUER, "KYC_CRED"), (AML_ISSUER, "AML_CRED")])

        assert payload == {
            "TransactionType": "PermissionedDomainSet",
            "Account": OWNER,
            "AcceptedCredentials": [
                {"Credential": {"Issuer": KYC_ISSUER, "CredentialType": "4B59435F43524544"}},
                {"Credential": {"Issuer": AML_ISSUER, "CredentialType": "414D4C5F43524544"}},
            ],
        }

    def test_update_in_place_carries_domain_id(self):
        payload = build_domain_set(OWNER, [(KYC_ISSUER, "KYC_CRED")], domain_id=DOMAIN_ID.lower())

        assert payload["DomainID"] == DOMAIN_ID

    def test_replacement_drops_omitted_pairs(self):
        """Пара, отсутствующая в новом наборе, перестаёт приниматься."""
        payload = build_domain_set(OWNER, [(AML_ISSUER, "AML_CRED")], domain_id=DOMAIN_ID)

        issuers = [entry["Credential"]["Issuer"] for entry in payload["AcceptedCredentials"]]
        assert issuers == [AML_ISSUER]

    def test_empty_set_opens_domain(self):
        assert "AcceptedCredentials" not in build_domain_set(OWNER, [])

    def test_requirement_models_accepted(self):
        requirement = CredentialRequirement.from_text(KYC_ISSUER, "KYC_CRED")

        payload = build_domain_set(OWNER, [requirement])
        assert payload["AcceptedCredentials"] == [requirement.to_payload()]

    def test_duplicates_rejected(self):
        with pytest.raises(ValidationError, match="duplicate"):
            build_domain_set(OWNER, [(KYC_ISSUER, "KYC_CRED"), (KYC_ISSUER, "KYC_CRED")])

    def test_limit(self):
        entries = [(KYC_ISSUER, f"TYPE_{i}") for i in range(MAX_ACCEPTED_CREDENTIALS + 1)]

        with pytest.raises(ValidationError, match="at most"):
            build_domain_set(OWNER, entries)

    def test_malformed_entry(self):
        with pytest.raises(ValidationError):
            build_domain_set(OWNER, [(KYC_ISSUER,)])

    def test_malformed_domain_id(self):
        with pytest.raises(ValidationError):
            build_domain_set(OWNER, [], domain_id="1234")


class TestDomainDelete:
    def test_payload(self):
        assert build_domain_delete(OWNER, DOMAIN_ID) == {
            "TransactionType": "PermissionedDomainDelete",
            "Account": OWNER,
            "DomainID": DOMAIN_ID,
        }

    def test_domain_id_required(self):
        with pytest.raises(ValidationError):
            build_domain_delete(OWNER, "")

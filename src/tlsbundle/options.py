"""
TLS Options

Configuration consumed by the server TLS selector: where to load an
existing certificate/key pair from, or which subject to issue a fresh
CA + leaf pair for. Options can be loaded from YAML files.
"""

from pathlib import Path
from typing import Optional

import yaml
from cryptography import x509
from cryptography.x509.oid import NameOID
from pydantic import BaseModel, Field, field_validator

# (field, OID) in the order the attributes are written into the distinguished name.
_NAME_ORDER = (
    ("country", NameOID.COUNTRY_NAME),
    ("province", NameOID.STATE_OR_PROVINCE_NAME),
    ("locality", NameOID.LOCALITY_NAME),
    ("street_address", NameOID.STREET_ADDRESS),
    ("postal_code", NameOID.POSTAL_CODE),
    ("organization", NameOID.ORGANIZATION_NAME),
    ("organizational_unit", NameOID.ORGANIZATIONAL_UNIT_NAME),
)


class Subject(BaseModel):
    """X.509 naming attributes for generated certificates.

    Multi-valued attributes accept either a single string or a list of
    strings. The same subject is written into both the CA and the leaf
    certificate.
    """

    model_config = {"frozen": True}

    country: list[str] = Field(default_factory=list, description="Two-letter country codes")
    organization: list[str] = Field(default_factory=list, description="Organization names")
    organizational_unit: list[str] = Field(
        default_factory=list, description="Organizational unit names"
    )
    locality: list[str] = Field(default_factory=list, description="Localities (cities)")
    province: list[str] = Field(default_factory=list, description="States or provinces")
    street_address: list[str] = Field(default_factory=list, description="Street addresses")
    postal_code: list[str] = Field(default_factory=list, description="Postal codes")
    serial_number: Optional[str] = Field(None, description="Subject serial number attribute")
    common_name: Optional[str] = Field(None, description="Common name (CN)")

    @field_validator(
        "country",
        "organization",
        "organizational_unit",
        "locality",
        "province",
        "street_address",
        "postal_code",
        mode="before",
    )
    @classmethod
    def wrap_single_value(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    def to_x509_name(self) -> x509.Name:
        """Build the distinguished name for this subject.

        Raises:
            ValueError: If an attribute value is not acceptable for its OID
                (for example a country code that is not two characters).
        """
        attributes: list[x509.NameAttribute] = []
        for field_name, oid in _NAME_ORDER:
            for value in getattr(self, field_name):
                attributes.append(x509.NameAttribute(oid, value))
        if self.common_name:
            attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, self.common_name))
        if self.serial_number:
            attributes.append(x509.NameAttribute(NameOID.SERIAL_NUMBER, self.serial_number))
        return x509.Name(attributes)


class TLSOptions(BaseModel):
    """Selects how the server certificate is obtained.

    Attributes:
        pem_file: Path to a PEM file holding certificate(s) and a private key.
        p12_file: Path to a PKCS#12 keystore. Ignored when ``pem_file`` is set.
        password: Keystore password, used only with ``p12_file``.
        subject: Subject used when a certificate has to be generated.
        hosts: DNS names or IP addresses for the generated leaf certificate.
    """

    pem_file: Optional[str] = Field(None, description="Path to PEM certificate/key file")
    p12_file: Optional[str] = Field(None, description="Path to PKCS#12 keystore")
    password: str = Field(default="", description="PKCS#12 keystore password")
    subject: Subject = Field(default_factory=Subject, description="Subject for generated certificates")
    hosts: list[str] = Field(default_factory=list, description="SAN entries for generated leaf")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "TLSOptions":
        """Load TLSOptions from a YAML file."""
        path = Path(path)
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

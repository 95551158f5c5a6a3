"""
tokens.json validator
"""
from typing import Optional
from urllib.parse import quote, unquote

from config.settings import ALLOWED_TOKEN_TAGS, TOKEN_LOGO_CDN_PREFIX
from core.validators.base import (
    Check,
    RegistryValidator,
    address_chain_key,
    check_checksums,
    check_required_fields,
    find_duplicates,
    is_array,
    is_number,
    is_object,
    is_string,
)
from core.violations import Violation

SINGULAR_ORACLE_FIELDS = ("alternativeOracle", "alternativeHardcodedOracle")
PLURAL_ORACLE_FIELDS = ("alternativeOracles", "alternativeHardcodedOracles")


def encode_uri_component(value: str) -> str:
    """Same escaping as javascript's encodeURIComponent"""
    return quote(value, safe="!~*'()")


def canonical_logo_uri(uri: str) -> Optional[str]:
    """
    Properly encoded form of a CDN logo URI, None for URIs not on the CDN
    """
    if not uri.startswith(TOKEN_LOGO_CDN_PREFIX):
        return None
    name = uri[len(TOKEN_LOGO_CDN_PREFIX):]
    return TOKEN_LOGO_CDN_PREFIX + encode_uri_component(unquote(name))


class TokensValidator(RegistryValidator):
    registry = "tokens"

    def checks(self) -> dict[str, Check]:
        return {
            "addresses are checksummed": self.check_checksums,
            "addresses are unique per chain": self.check_unique,
            "required fields have correct types": self.check_fields,
            "decimals are between 0 and 18": self.check_decimals,
            "metadata is well formed": self.check_metadata,
            "tags are allowed": self.check_tags,
            "logoURI is properly encoded": self.check_logo_uris,
            "oracle fields use plural names": self.check_oracle_field_names,
        }

    def check_checksums(self, records: list) -> list[Violation]:
        return check_checksums("addresses are checksummed", records, ["address"])

    def check_unique(self, records: list) -> list[Violation]:
        return find_duplicates(
            "addresses are unique per chain",
            records,
            key=address_chain_key(),
            identifier=lambda r: r.get("address"),
            what="address-chainId combination",
        )

    def check_fields(self, records: list) -> list[Violation]:
        return check_required_fields(
            "required fields have correct types",
            records,
            fields={
                "chainId": "number",
                "decimals": "number",
                "address": "string",
                "name": "string",
                "symbol": "string",
                "isWhitelisted": "boolean",
            },
            optional={"isListed": "boolean", "metadata": "object"},
        )

    def check_decimals(self, records: list) -> list[Violation]:
        violations = []
        for index, token in enumerate(records):
            decimals = token.get("decimals") if isinstance(token, dict) else None
            if is_number(decimals) and not 0 <= decimals <= 18:
                violations.append(Violation(
                    "decimals are between 0 and 18", "invalid decimals value", index=index,
                    identifier=token.get("address"), chain_id=token.get("chainId"),
                    expected="0..18", actual=decimals,
                ))
        return violations

    def check_metadata(self, records: list) -> list[Violation]:
        check = "metadata is well formed"
        violations = []
        for index, token in enumerate(records):
            metadata = token.get("metadata") if isinstance(token, dict) else None
            if not is_object(metadata):
                continue
            address = token.get("address")

            # Missing or empty logoURI is tolerated
            if "logoURI" in metadata and not is_string(metadata["logoURI"]):
                violations.append(Violation(
                    check, "metadata.logoURI must be a string", index=index, identifier=address,
                    expected="string", actual=metadata["logoURI"],
                ))

            for name in PLURAL_ORACLE_FIELDS + ("tags",):
                if name in metadata and not is_array(metadata[name]):
                    violations.append(Violation(
                        check, f"metadata.{name} must be an array", index=index, identifier=address,
                        expected="array", actual=metadata[name],
                    ))
        return violations

    def check_tags(self, records: list) -> list[Violation]:
        violations = []
        for index, token in enumerate(records):
            metadata = token.get("metadata") if isinstance(token, dict) else None
            tags = metadata.get("tags") if is_object(metadata) else None
            if not is_array(tags):
                continue
            for tag in tags:
                if not is_string(tag) or tag not in ALLOWED_TOKEN_TAGS:
                    violations.append(Violation(
                        "tags are allowed", "unknown tag", index=index,
                        identifier=token.get("address"), chain_id=token.get("chainId"),
                        expected=sorted(ALLOWED_TOKEN_TAGS), actual=tag,
                    ))
        return violations

    def check_logo_uris(self, records: list) -> list[Violation]:
        violations = []
        for index, token in enumerate(records):
            metadata = token.get("metadata") if isinstance(token, dict) else None
            uri = metadata.get("logoURI") if is_object(metadata) else None
            if not uri or not is_string(uri):
                continue
            expected = canonical_logo_uri(uri)
            if expected is not None and expected != uri:
                violations.append(Violation(
                    "logoURI is properly encoded", "improperly encoded logoURI", index=index,
                    identifier=token.get("address"), chain_id=token.get("chainId"),
                    expected=expected, actual=uri,
                ))
        return violations

    def check_oracle_field_names(self, records: list) -> list[Violation]:
        check = "oracle fields use plural names"
        violations = []
        for index, token in enumerate(records):
            if not isinstance(token, dict):
                continue
            metadata = token.get("metadata") if is_object(token.get("metadata")) else {}
            for singular, plural in zip(SINGULAR_ORACLE_FIELDS, PLURAL_ORACLE_FIELDS):
                if singular in token:
                    violations.append(Violation(
                        check, f"uses singular field '{singular}', use '{plural}'", index=index,
                        identifier=token.get("address"), chain_id=token.get("chainId"),
                    ))
                if singular in metadata:
                    violations.append(Violation(
                        check, f"uses singular field 'metadata.{singular}', use '{plural}'", index=index,
                        identifier=token.get("address"), chain_id=token.get("chainId"),
                    ))
                if plural in token and not is_array(token[plural]):
                    violations.append(Violation(
                        check, f"{plural} must be an array", index=index,
                        identifier=token.get("address"), chain_id=token.get("chainId"),
                        expected="array", actual=token[plural],
                    ))
        return violations

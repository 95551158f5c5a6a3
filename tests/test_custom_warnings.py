import pytest

from core.validators.custom_warnings import CustomWarningsValidator, metadata_problems, warning_kind

from factories import MARKET_A, USDC, VAULT_A, VAULT_B, market_warning, messages, vault_warning

validator = CustomWarningsValidator()

TEXT_PART = {"type": "text", "content": "See the "}
LINK_PART = {"type": "link", "text": "forum post", "href": "https://forum.morpho.org", "external": True}


def test_valid_warnings_pass():
    records = [
        vault_warning(),
        vault_warning(VAULT_B, metadata={"parts": [TEXT_PART, LINK_PART]}),
        market_warning(),
    ]
    assert all(r.ok for r in validator.validate(records))


def test_content_and_parts_are_mutually_exclusive():
    metadata = {"content": "foo", "parts": [TEXT_PART]}
    violations = validator.check_metadata([vault_warning(metadata=metadata)])
    assert messages(violations) == ["metadata must have either content or parts, not both"]


@pytest.mark.parametrize("metadata, problem", [
    ({}, "metadata must have content or parts"),
    ({"content": " "}, "metadata.content must be a non-empty string"),
    ({"parts": []}, "metadata.parts must be a non-empty array"),
    ({"parts": [{"type": "image"}]}, "parts[0]: unknown part type 'image'"),
    ({"parts": [{"type": "text", "content": ""}]}, "parts[0]: text part must have non-empty content"),
    ({"parts": [dict(LINK_PART, external="yes")]}, "parts[0]: link part must have boolean external"),
    ("text", "metadata must be an object"),
])
def test_metadata_problems(metadata, problem):
    assert metadata_problems(metadata) == [problem]


def test_warning_kind():
    assert warning_kind(vault_warning()) == "vault"
    assert warning_kind(market_warning()) == "market"
    assert warning_kind({"vaultAddress": VAULT_A, "marketId": MARKET_A}) is None
    assert warning_kind({"chainId": 1}) is None


def test_entry_without_target():
    assert [v.index for v in validator.check_kind([vault_warning(), {"chainId": 1}])] == [1]


def test_vault_checksum_and_market_id_format():
    records = [vault_warning(USDC.lower()), market_warning("0x1234")]
    assert len(validator.check_vault_checksums(records)) == 1
    assert messages(validator.check_market_ids(records)) == ["invalid marketId format"]


def test_duplicates_report_all_indices():
    records = [market_warning(), vault_warning(), market_warning(MARKET_A.upper().replace("0X", "0x")), market_warning()]
    violations = validator.check_duplicates("no duplicate market warnings", records, "market")

    assert len(violations) == 1
    assert violations[0].actual == [0, 2, 3]


def test_same_target_on_other_chain_is_allowed():
    records = [vault_warning(chain_id=1), vault_warning(chain_id=8453)]
    assert validator.check_duplicates("no duplicate vault warnings", records, "vault") == []


def test_level_and_fields():
    records = [vault_warning(level="ORANGE"), market_warning(chain_id="1")]
    assert [v.actual for v in validator.check_level(records)] == ["ORANGE"]
    assert [v.index for v in validator.check_fields(records)] == [1]


def test_unhashable_level_and_chain_are_violations():
    records = [vault_warning(level=["RED"]), vault_warning(chain_id=[1]), vault_warning(chain_id=[1])]

    assert [v.index for v in validator.check_level(records)] == [0]
    assert validator.check_duplicates("no duplicate vault warnings", records, "vault") == []
    assert [v.index for v in validator.check_fields(records)] == [0, 1, 2]

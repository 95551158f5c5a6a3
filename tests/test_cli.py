import argparse
import json

import pytest

import main

from factories import USDC, VAULT_A, token


def test_validate_passes(data_dir):
    assert main.main(["validate", "--no-remote", "--data-dir", str(data_dir)]) == main.EXIT_OK


def test_validate_reports_violations(data_dir):
    (data_dir / "tokens.json").write_text(json.dumps([token(USDC.lower())]))
    code = main.main(["validate", "--no-remote", "--registry", "tokens", "--data-dir", str(data_dir), "--verbose"])
    assert code == main.EXIT_VIOLATIONS


def test_validate_aborts_on_missing_file(tmp_path):
    assert main.main(["validate", "--no-remote", "--data-dir", str(tmp_path)]) == main.EXIT_ABORTED


def test_unknown_registry_is_rejected():
    with pytest.raises(SystemExit):
        main.main(["validate", "--registry", "nope"])


def test_transform_writes_output(tmp_path):
    source = tmp_path / "tokens.json"
    target = tmp_path / "fixed.json"
    source.write_text(json.dumps([token(USDC.lower())]))

    assert main.main(["transform", "checksum-tokens", "--input", str(source), "--output", str(target)]) == 0

    content = target.read_text()
    assert content.endswith("\n")
    assert json.loads(content)[0]["address"] == USDC


def test_transform_requires_array(tmp_path):
    source = tmp_path / "points.json"
    source.write_text("{}")
    code = main.main(["transform", "checksum-tokens", "--input", str(source), "--output", str(tmp_path / "x.json")])
    assert code == main.EXIT_ABORTED


def test_migrate_vaults(tmp_path):
    source = tmp_path / "whitelist.json"
    target = tmp_path / "vaults-listing.json"
    source.write_text(json.dumps({"1": {VAULT_A: {"description": "Prime"}}}))

    assert main.main(["migrate-vaults", "--input", str(source), "--output", str(target)]) == 0
    assert json.loads(target.read_text()) == [{"address": VAULT_A, "chainId": 1, "description": "Prime"}]


def test_migrate_feeds(tmp_path):
    tokens = tmp_path / "tokens.json"
    feeds = tmp_path / "chainlink.json"
    target = tmp_path / "price-feeds.json"
    tokens.write_text(json.dumps([token()]))
    feeds.write_text(json.dumps([{"name": "USDC / USD", "proxyAddress": "0x" + "3" * 40}]))

    args = ["migrate-feeds", "--tokens", str(tokens), "--chainlink", f"1={feeds}", "--output", str(target)]
    assert main.main(args) == 0
    assert json.loads(target.read_text())[0]["tokenIn"]["address"] == USDC


def test_chain_file_argument():
    assert main.parse_chain_file("8453=feeds.json") == (8453, "feeds.json")
    with pytest.raises(argparse.ArgumentTypeError):
        main.parse_chain_file("base=feeds.json")


def test_migrate_feeds_uses_canonical_token_list(tmp_path):
    tokens = tmp_path / "tokens.json"
    feeds = tmp_path / "redstone.json"
    target = tmp_path / "price-feeds.json"
    tokens.write_text(json.dumps(["junk", {"chainId": 1, "address": USDC, "symbol": "USDC", "isWhitelisted": False}]))
    feeds.write_text(json.dumps([{"symbol": "USDC", "denomination": "USD", "contractAddress": "0x" + "3" * 40}]))

    args = ["migrate-feeds", "--tokens", str(tokens), "--redstone", f"1={feeds}", "--output", str(target)]
    assert main.main(args) == 0
    assert json.loads(target.read_text())[0]["tokenIn"]["address"] == USDC


def test_migrate_feeds_requires_token_array(tmp_path):
    tokens = tmp_path / "tokens.json"
    tokens.write_text(json.dumps({"tokens": []}))

    args = ["migrate-feeds", "--tokens", str(tokens), "--output", str(tmp_path / "out.json")]
    assert main.main(args) == main.EXIT_ABORTED

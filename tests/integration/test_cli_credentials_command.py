"""Integration tests for the `credentials` command."""

from __future__ import annotations

from typer.testing import CliRunner

from bookmend.cli import app


def test_credentials_status_reports_missing_key() -> None:
    """Status output should describe storage availability and key presence."""

    runner = CliRunner()

    result = runner.invoke(app, ["credentials"])

    assert result.exit_code == 0, result.output
    assert "Secure credential storage: available" in result.output
    assert "Stored gemini API key: not set" in result.output


def test_credentials_set_prompts_and_stores_key(credential_store) -> None:
    """`--set-api-key` should read a hidden prompt and persist the value."""

    runner = CliRunner()

    result = runner.invoke(
        app, ["credentials", "--provider", "openai", "--set-api-key"], input="secret\n"
    )

    assert result.exit_code == 0, result.output
    assert "API key stored in secure credential storage." in result.output
    assert credential_store.keys == {"openai": "secret"}

    status = runner.invoke(app, ["credentials", "--provider", "openai"])
    assert "Stored openai API key: present" in status.output


def test_credentials_set_with_blank_input_fails(credential_store) -> None:
    """A blank prompt answer should not store anything."""

    runner = CliRunner()

    result = runner.invoke(app, ["credentials", "--set-api-key"], input="\n")

    assert result.exit_code == 1
    assert "credentials failed at stage `credentials`: No API key entered." in result.output
    assert credential_store.keys == {}


def test_credentials_clear_reports_whether_a_key_existed(credential_store) -> None:
    """Clearing should say whether a stored key was removed."""

    credential_store.keys["gemini"] = "old-key"
    runner = CliRunner()

    first = runner.invoke(app, ["credentials", "--clear-api-key"])
    second = runner.invoke(app, ["credentials", "--clear-api-key"])

    assert first.exit_code == 0
    assert "Stored API key cleared from secure credential storage." in first.output
    assert second.exit_code == 0
    assert "No stored API key found in secure credential storage." in second.output
    assert credential_store.keys == {}


def test_credentials_rejects_set_and_clear_together() -> None:
    """Conflicting actions should fail with a hint."""

    runner = CliRunner()

    result = runner.invoke(app, ["credentials", "--set-api-key", "--clear-api-key"])

    assert result.exit_code == 1
    assert "`--set-api-key` and `--clear-api-key` cannot be used together." in result.output
    assert "Hint: Run one credentials action per command invocation." in result.output

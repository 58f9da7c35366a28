"""Tests for the mailroom CLI against the fake API."""

import base64
import json
from io import BytesIO

import httpx
import pytest
from PIL import Image

from mailroom import cli
from mailroom.api_client import MailroomAPIClient


@pytest.fixture
def run_cli(fake_api, tmp_path, monkeypatch):
    """Run ``mailroom`` with the client wired to the fake API and a temp state file."""
    state_path = tmp_path / "state.json"
    monkeypatch.setattr(cli.settings, "state_path", state_path)
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(
        cli,
        "MailroomAPIClient",
        lambda base_url, **kwargs: MailroomAPIClient(base_url, transport=httpx.MockTransport(fake_api.handler)),
    )

    def run(*argv):
        cli.main(list(argv))

    run.state_path = state_path
    return run


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main([])
    assert exc_info.value.code == 1
    assert "usage: mailroom" in capsys.readouterr().out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--version"])
    assert exc_info.value.code == 0
    assert "mailroom" in capsys.readouterr().out


def test_orgs_list_marks_current(run_cli, capsys):
    run_cli("orgs", "list")
    out = capsys.readouterr().out
    assert "* org-a  Acme Offices  (admin, trial)" in out
    assert "  org-b  Beta Labs  (member, trial)" in out


def test_orgs_switch_persists_selection(run_cli, capsys):
    run_cli("orgs", "switch", "org-b")
    assert "Switched to Beta Labs" in capsys.readouterr().out
    assert json.loads(run_cli.state_path.read_text())["selectedOrganizationId"] == "org-b"

    run_cli("orgs", "list")
    assert "* org-b" in capsys.readouterr().out


def test_orgs_switch_unknown_keeps_selection(run_cli, capsys):
    run_cli("orgs", "switch", "org-nope")
    assert "still using Acme Offices" in capsys.readouterr().out


def test_orgs_current_shows_trial_usage(run_cli, capsys):
    run_cli("orgs", "current")
    out = capsys.readouterr().out
    assert "Acme Offices (org-a)" in out
    assert "Packages this month: 0/500" in out


def test_orgs_current_when_membership_vanishes_on_refresh(fake_api, run_cli, capsys):
    def drop_memberships(request):
        if len(fake_api.requests_to("GET", "/api/organizations")) == 2:
            fake_api.organizations.clear()

    fake_api.on_request = drop_memberships
    run_cli("orgs", "current")
    assert "No organization selected" in capsys.readouterr().out


def test_mail_intake_and_deliver(fake_api, run_cli, capsys):
    run_cli("mail", "intake", "--type", "package", "--tracking", "1Z999AA1", "--sender", "")
    assert "Logged: mail-1 (package, pending)" in capsys.readouterr().out
    assert fake_api.mail_items["mail-1"]["organizationId"] == "org-a"
    assert "sender" not in fake_api.mail_items["mail-1"]

    run_cli("mail", "deliver", "mail-1")
    assert "mail-1: delivered" in capsys.readouterr().out
    assert fake_api.mail_items["mail-1"]["status"] == "delivered"


def test_mail_notify_delivered_item_fails(fake_api, run_cli, capsys):
    fake_api.add_mail_item("org-a", id="m1", status="delivered")
    with pytest.raises(SystemExit) as exc_info:
        run_cli("mail", "notify", "m1")
    assert exc_info.value.code == 1
    assert "Cannot notify a mail item that is delivered" in capsys.readouterr().err


def test_mail_without_organizations_fails(fake_api, run_cli, capsys):
    fake_api.organizations.clear()
    with pytest.raises(SystemExit):
        run_cli("mail", "list")
    assert "No organization selected" in capsys.readouterr().err


def test_recipients_add_rejects_bad_email(run_cli, capsys):
    with pytest.raises(SystemExit):
        run_cli("recipients", "add", "--first-name", "Ana", "--last-name", "Ruiz", "--email", "nope")
    assert "Error:" in capsys.readouterr().err


def test_stats(fake_api, run_cli, capsys):
    fake_api.add_mail_item("org-a")
    run_cli("stats", "--activity", "1")
    out = capsys.readouterr().out
    assert "Today's mail:       1" in out
    assert "Recent activity:" in out


def test_photo_writes_data_url(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    source = tmp_path / "box.png"
    Image.new("RGB", (1600, 1200), (90, 140, 200)).save(source)
    output = tmp_path / "box.txt"

    cli.main(["photo", str(source), "-o", str(output), "--max-width", "400"])

    data_url = output.read_text()
    assert data_url.startswith("data:image/jpeg;base64,")
    img = Image.open(BytesIO(base64.b64decode(data_url.split(",", 1)[1])))
    assert img.size == (400, 300)
    assert "->" in capsys.readouterr().err


def test_photo_rejects_unsupported_type(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    source = tmp_path / "scan.bmp"
    Image.new("RGB", (10, 10)).save(source)
    with pytest.raises(SystemExit):
        cli.main(["photo", str(source)])
    assert "Unsupported image type" in capsys.readouterr().err


@pytest.mark.parametrize(
    "flags",
    [["--quality", "2"], ["--quality", "0"], ["--max-width", "-1"]],
)
def test_photo_rejects_out_of_range_options(flags, tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    source = tmp_path / "box.png"
    Image.new("RGB", (10, 10)).save(source)
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["photo", str(source), *flags])
    assert exc_info.value.code == 1
    assert "Error:" in capsys.readouterr().err

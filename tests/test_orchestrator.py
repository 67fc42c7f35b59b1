import base64
from unittest.mock import Mock

import pytest

from services.relay_service import build_orchestrator
from src.relay.errors import (
    CredentialExchangeFailed,
    DriveUnauthorized,
    MissingAccessToken,
    MissingParameters,
    ServerMisconfigured,
    UnexpectedFailure,
    UpstreamFetchFailed,
)
from src.relay.models import RelayRequest, RelayStage

TOKEN = "validlongtoken1234567890"
PDF = b"%PDF-1.7 relay"


@pytest.fixture
def drive_ok(fake_session, response):
    def _make(**extra):
        responses = {
            "metadata": response(json_body={"name": "Board Deck", "mimeType": "application/vnd.google-apps.presentation"}),
            "export": response(body=PDF, headers={"Content-Type": "text/html"}),
            "media": response(body=PDF, headers={"Content-Type": "application/pdf"}),
        }
        responses.update(extra)
        return fake_session(responses)

    return _make


@pytest.mark.parametrize("document_id", [None, "", "   "])
def test_missing_document_id_fails_before_any_network_call(settings, fake_session, openai_client, document_id):
    session = fake_session()
    orchestrator = build_orchestrator(settings, session=session, openai_client=openai_client)
    with pytest.raises(MissingParameters) as excinfo:
        orchestrator.run(RelayRequest(document_id=document_id, caller_token=TOKEN))
    assert excinfo.value.stage == RelayStage.VALIDATING_INPUT.value
    assert session.calls == []
    openai_client.files.create.assert_not_called()


def test_missing_ingestion_key_fails_regardless_of_input(make_settings, fake_session, openai_client):
    session = fake_session()
    orchestrator = build_orchestrator(make_settings(OPENAI_API_KEY=None), session=session, openai_client=openai_client)
    for request in (RelayRequest(document_id=None), RelayRequest(document_id="abc123", caller_token=TOKEN)):
        with pytest.raises(ServerMisconfigured) as excinfo:
            orchestrator.run(request)
        assert excinfo.value.stage == RelayStage.CHECKING_CONFIGURATION.value
    assert session.calls == []


def test_no_token_and_no_refresh_config_is_missing_access_token(make_settings, fake_session, openai_client):
    settings = make_settings(GOOGLE_CLIENT_ID=None, GOOGLE_CLIENT_SECRET=None, GOOGLE_REFRESH_TOKEN=None)
    session = fake_session()
    orchestrator = build_orchestrator(settings, session=session, openai_client=openai_client)
    with pytest.raises(MissingAccessToken) as excinfo:
        orchestrator.run(RelayRequest(document_id="abc123"))
    assert excinfo.value.status_code == 401
    assert excinfo.value.to_dict()["error"] == "missing_access_token"
    assert session.calls == []


def test_export_relay_succeeds(settings, drive_ok, openai_client):
    session = drive_ok()
    orchestrator = build_orchestrator(settings, session=session, openai_client=openai_client)
    result = orchestrator.run(
        RelayRequest(document_id="abc123", caller_token=TOKEN, export_mime_type="application/pdf")
    )

    assert session.kinds() == ["metadata", "export"]
    assert result.mime_type == "application/pdf"
    assert result.remote_file_id == "file-abc123"
    assert result.filename == "Board_Deck"
    assert result.size == len(PDF)
    assert result.content_base64 is None
    openai_client.files.create.assert_called_once_with(
        file=("Board_Deck", PDF, "application/pdf"),
        purpose="assistants",
    )


def test_refreshed_token_is_used_for_drive(settings, drive_ok, response, openai_client):
    session = drive_ok(token=response(json_body={"access_token": "ya29.refreshed-access-token"}))
    orchestrator = build_orchestrator(settings, session=session, openai_client=openai_client)
    orchestrator.run(RelayRequest(document_id="abc123"))

    assert session.kinds() == ["token", "metadata", "media"]
    assert session.calls[2]["headers"]["Authorization"] == "Bearer ya29.refreshed-access-token"


def test_raw_bytes_only_when_requested(settings, drive_ok, openai_client):
    orchestrator = build_orchestrator(settings, session=drive_ok(), openai_client=openai_client)
    result = orchestrator.run(
        RelayRequest(document_id="abc123", caller_token=TOKEN, desired_filename="deck v2.pdf", include_raw_bytes=True)
    )
    assert base64.b64decode(result.content_base64) == PDF
    assert result.filename == "deck_v2.pdf"


def test_metadata_failure_is_not_fatal(settings, drive_ok, response, openai_client):
    session = drive_ok(metadata=response(status=500, body=b"backend error"))
    orchestrator = build_orchestrator(settings, session=session, openai_client=openai_client)
    result = orchestrator.run(RelayRequest(document_id="abc123", caller_token=TOKEN))

    assert result.filename == "abc123.pdf"
    assert result.mime_type == "application/pdf"


def test_drive_404_propagates_status_and_body(settings, drive_ok, response, openai_client):
    session = drive_ok(media=response(status=404, body=b"File not found: abc123."))
    orchestrator = build_orchestrator(settings, session=session, openai_client=openai_client)
    with pytest.raises(UpstreamFetchFailed) as excinfo:
        orchestrator.run(RelayRequest(document_id="abc123", caller_token=TOKEN))
    err = excinfo.value
    assert err.status_code == 404
    assert err.to_dict() == {"error": "drive_error", "detail": "File not found: abc123."}
    assert err.stage == RelayStage.FETCHING_CONTENT.value
    openai_client.files.create.assert_not_called()


def test_drive_401_is_unauthorized(settings, drive_ok, response, openai_client):
    session = drive_ok(media=response(status=401, body=b"Invalid Credentials"))
    orchestrator = build_orchestrator(settings, session=session, openai_client=openai_client)
    with pytest.raises(DriveUnauthorized):
        orchestrator.run(RelayRequest(document_id="abc123", caller_token=TOKEN))


def test_rejected_refresh_stops_pipeline(settings, drive_ok, response, openai_client):
    session = drive_ok(token=response(status=400, body=b'{"error": "invalid_grant"}'))
    orchestrator = build_orchestrator(settings, session=session, openai_client=openai_client)
    with pytest.raises(CredentialExchangeFailed) as excinfo:
        orchestrator.run(RelayRequest(document_id="abc123"))
    assert excinfo.value.stage == RelayStage.RESOLVING_CREDENTIAL.value
    assert session.kinds() == ["token"]


def test_unclassified_exception_becomes_unexpected_failure(settings, drive_ok, openai_client):
    openai_client.files.create.side_effect = RuntimeError("socket closed")
    orchestrator = build_orchestrator(settings, session=drive_ok(), openai_client=openai_client)
    with pytest.raises(UnexpectedFailure) as excinfo:
        orchestrator.run(RelayRequest(document_id="abc123", caller_token=TOKEN))
    assert excinfo.value.to_dict() == {"error": "server_error", "detail": "socket closed"}
    assert excinfo.value.stage == RelayStage.FORWARDING.value


def test_convert_does_not_need_ingestion_key(make_settings, drive_ok, openai_client):
    orchestrator = build_orchestrator(make_settings(OPENAI_API_KEY=None), session=drive_ok(), openai_client=openai_client)
    document = orchestrator.convert(
        RelayRequest(document_id="abc123", caller_token=TOKEN, export_mime_type="application/pdf")
    )
    assert document.payload.content == PDF
    assert document.metadata.name == "Board Deck"
    openai_client.files.create.assert_not_called()


def test_raw_bytes_are_not_encoded_when_forwarding_fails(settings, drive_ok, openai_client, monkeypatch):
    encoder = Mock(wraps=base64.b64encode)
    monkeypatch.setattr("src.relay.orchestrator.b64encode", encoder)
    openai_client.files.create.side_effect = RuntimeError("socket closed")
    orchestrator = build_orchestrator(settings, session=drive_ok(), openai_client=openai_client)

    with pytest.raises(UnexpectedFailure):
        orchestrator.run(RelayRequest(document_id="abc123", caller_token=TOKEN, include_raw_bytes=True))
    encoder.assert_not_called()

    openai_client.files.create.side_effect = None
    result = orchestrator.run(RelayRequest(document_id="abc123", caller_token=TOKEN, include_raw_bytes=True))
    encoder.assert_called_once_with(PDF)
    assert base64.b64decode(result.content_base64) == PDF


def test_close_releases_session_but_not_injected_client(settings, drive_ok, openai_client):
    session = drive_ok()
    orchestrator = build_orchestrator(settings, session=session, openai_client=openai_client)
    orchestrator.run(RelayRequest(document_id="abc123", caller_token=TOKEN))
    orchestrator.close()

    assert session.closed >= 1
    openai_client.close.assert_not_called()

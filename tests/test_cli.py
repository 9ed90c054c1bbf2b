"""Tests for the command line interface"""

import pytest
from click.testing import CliRunner

import cli
from conftest import FakeTransport
from zftp.models import SubmissionResult
from zftp.step import StepOutcome

JCL = "//MYJOB JOB (ACCT),'TEST',CLASS=A\n//STEP1 EXEC PGM=IEFBR14\n"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in ["ZFTP_HOST", "ZFTP_PORT", "ZFTP_USERNAME", "ZFTP_PASSWORD", "ZFTP_WAIT_TIME", "ZFTP_MAX_CC"]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli.JobSubmitCLI, "install_signal_handlers", lambda self: None)


@pytest.fixture
def jcl_file(tmp_path):
    path = tmp_path / "job.jcl"
    path.write_text(JCL)
    return path


@pytest.fixture
def fake_gateway(monkeypatch, server, clock, token):
    """Route the CLI's job step through the in-memory gateway"""
    build_step = cli.JobSubmitCLI.build_step

    def patched_build_step(self, job):
        step = build_step(self, job)
        step.connector_options.update(transport_factory=lambda: FakeTransport(server), clock=clock)
        return step

    monkeypatch.setattr(cli.JobSubmitCLI, "build_step", patched_build_step)
    monkeypatch.setattr(cli.JobSubmitCLI, "run",
                        lambda self, job: self.build_step(job).run(token=token))
    return server


def invoke(*args):
    return CliRunner().invoke(cli.main, list(args))


def test_successful_job_saves_log(fake_gateway, jcl_file, tmp_path):
    out_dir = tmp_path / "logs"
    out_dir.mkdir()

    result = invoke(str(jcl_file), "-h", "mvs01", "-u", "USER1", "-pw", "SECRET", "-o", str(out_dir))

    assert result.exit_code == 0, result.output
    assert "Captured RC = [0000]" in result.output
    saved = out_dir / "MYJOB [0000] (mvs01 - JOB12345).log"
    assert saved.exists()
    assert b"J E S 2" in saved.read_bytes()


def test_rc_above_max_exits_nonzero(fake_gateway, jcl_file):
    fake_gateway.list_script = [["MYJOB    JOB12345 USER1    OUTPUT A        RC=0008 3 spool files"]]

    result = invoke(str(jcl_file), "-h", "mvs01", "-u", "USER1", "-pw", "SECRET", "--max-cc", "4")

    assert result.exit_code == 1
    assert "z/OS job failed with CC 0008" in result.output


def test_max_cc_raises_threshold(fake_gateway, jcl_file):
    fake_gateway.list_script = [["MYJOB    JOB12345 USER1    OUTPUT A        RC=0004 3 spool files"]]

    result = invoke(str(jcl_file), "-h", "mvs01", "-u", "USER1", "-pw", "SECRET", "--max-cc", "4")

    assert result.exit_code == 0, result.output


def test_missing_credentials(jcl_file):
    result = invoke(str(jcl_file), "-h", "mvs01")

    assert result.exit_code == 2
    assert "username and a password" in result.output


def test_invalid_max_cc(jcl_file):
    result = invoke(str(jcl_file), "-h", "mvs01", "-u", "USER1", "-pw", "SECRET", "--max-cc", "12345")

    assert result.exit_code == 2
    assert "Invalid configuration" in result.output


def test_connection_failure_reported(monkeypatch, jcl_file):
    def failed_run(self, job):
        result = SubmissionResult(success=False, completion_code="COULD_NOT_CONNECT")
        return StepOutcome(result=result, accepted=False, printable_cc="COULD_NOT_CONNECT",
                           report="Job [] processing failed. Reason: [COULD_NOT_CONNECT]")

    monkeypatch.setattr(cli.JobSubmitCLI, "run", failed_run)

    result = invoke(str(jcl_file), "-h", "mvs01", "-u", "USER1", "-pw", "SECRET")

    assert result.exit_code == 1
    assert "COULD_NOT_CONNECT" in result.output

"""Tests for the completion poller state machine"""

import io

import pytest

from conftest import JOB_LOG, AbortedTransfer, FakeToken, FakeTransport, not_ready
from zftp.errors import (
    JobIdNotAssigned,
    JobVanishedFromSpool,
    LoginError,
    ReplyError,
    TransportError,
    WaitInterrupted,
    WaitTimedOut,
)
from zftp.listener import RecordingListener
from zftp.models import CompletionKind, Credentials, JobContext, JobSubmission, PollOutcome, SessionSettings
from zftp.poller import CancellationToken, CompletionPoller, PollState
from zftp.session import FTPSession


@pytest.fixture
def make_ctx(server, clock, token):
    def factory(wait_time=0, job_id="JOB12345", **settings_kwargs):
        settings = SessionSettings(host="mvs", credentials=Credentials("USER1", "SECRET"), **settings_kwargs)
        session = FTPSession(settings, transport_factory=lambda: FakeTransport(server))
        submission = JobSubmission.create("//JOB", wait_time=wait_time, clock=clock)
        ctx = JobContext(submission=submission, session=session, listener=RecordingListener(), token=token)
        if job_id:
            ctx.handle.assign_id(job_id)
        return ctx
    return factory


@pytest.fixture
def poller(clock):
    return CompletionPoller(interval=10, clock=clock)


def test_found_and_fetched_on_first_poll(server, make_ctx, poller):
    ctx = make_ctx()
    sink = io.BytesIO()

    assert poller.wait_for_completion(ctx, sink) == PollState.DONE

    assert sink.getvalue().decode("latin-1").splitlines() == JOB_LOG
    assert ctx.handle.job_name == "MYJOB"
    assert str(ctx.handle.completion_code) == "0000"


def test_job_listed_later(server, make_ctx, poller, token):
    server.nlst_script = [[], ["JOB11111"], ["JOB11111", "JOB12345"]]
    ctx = make_ctx()

    assert poller.wait_for_completion(ctx, io.BytesIO()) == PollState.DONE
    assert token.waits == 3


def test_log_not_ready_keeps_waiting(server, make_ctx, poller, token):
    server.retr_script = [not_ready(), not_ready(), JOB_LOG]
    ctx = make_ctx()

    assert poller.wait_for_completion(ctx, io.BytesIO()) == PollState.DONE
    assert token.waits == 3


def test_job_vanishing_after_being_observed(server, make_ctx, poller):
    server.nlst_script = [["JOB12345"], []]
    server.retr_script = [not_ready()]
    ctx = make_ctx()

    with pytest.raises(JobVanishedFromSpool) as excinfo:
        poller.wait_for_completion(ctx, io.BytesIO())

    assert excinfo.value.code == "JOB_NOT_FOUND_IN_JES"
    assert "Job [JOB12345] cannot be found in JES" in ctx.listener.errors


def test_deadline_exceeded(server, make_ctx, poller, clock):
    server.nlst_script = [[]]
    start = clock.now
    ctx = make_ctx(wait_time=1)

    with pytest.raises(WaitTimedOut) as excinfo:
        poller.wait_for_completion(ctx, io.BytesIO())

    assert excinfo.value.code == "WAIT_ERROR"
    assert 60 < clock.now - start <= 60 + poller.interval


def test_unbounded_wait_never_times_out(server, make_ctx, poller, token):
    server.nlst_script = [[]] * 500 + [["JOB12345"]]
    ctx = make_ctx(wait_time=0)

    assert poller.wait_for_completion(ctx, io.BytesIO()) == PollState.DONE
    assert token.waits == 501


def test_cancelled_wait_is_interrupted(server, make_ctx, poller, clock):
    server.nlst_script = [[]]
    ctx = make_ctx(wait_time=0)
    ctx.token = FakeToken(clock, cancel_after=2)

    with pytest.raises(WaitInterrupted) as excinfo:
        poller.wait_for_completion(ctx, io.BytesIO())

    assert excinfo.value.code == "WAIT_INTERRUPTED"
    assert "Interrupted." in ctx.listener.errors


def test_real_token_cancelled_before_wait(make_ctx):
    ctx = make_ctx()
    ctx.token = CancellationToken()
    ctx.token.cancel()

    with pytest.raises(WaitInterrupted):
        CompletionPoller(interval=30).wait_for_completion(ctx, io.BytesIO())


def test_transient_listing_error_is_retried(server, make_ctx, poller):
    server.nlst_script = [TransportError("timed out"), ["JOB12345"]]
    ctx = make_ctx()

    assert poller.wait_for_completion(ctx, io.BytesIO()) == PollState.DONE
    assert server.connects == 2


def test_check_availability_outcomes(server, make_ctx, poller):
    ctx = make_ctx()

    server.nlst_script = [["JOB12345"]]
    assert poller.check_availability(ctx) == PollOutcome.FOUND

    server.nlst_script = [[]]
    assert poller.check_availability(ctx) == PollOutcome.NOT_FOUND
    assert poller.check_availability(ctx, observed=True) == PollOutcome.NOT_FOUND_AFTER_BEING_FOUND

    server.nlst_script = [ReplyError("501 Syntax error")]
    assert poller.check_availability(ctx) == PollOutcome.TRANSIENT_IO_ERROR


def test_login_failure_while_polling(server, make_ctx, poller):
    server.login_script = [ReplyError("530 PASS command failed")]
    ctx = make_ctx()

    with pytest.raises(LoginError) as excinfo:
        poller.wait_for_completion(ctx, io.BytesIO())

    assert excinfo.value.code == "FETCH_LOG_ERROR_LOGIN"


def test_fetch_io_error_is_not_retried(server, make_ctx, poller, token):
    server.retr_script = [TransportError("data connection reset")]
    ctx = make_ctx()

    with pytest.raises(TransportError) as excinfo:
        poller.wait_for_completion(ctx, io.BytesIO())

    assert excinfo.value.code == "FETCH_LOG_IO_ERROR"
    assert token.waits == 1


def test_polling_requires_job_id(make_ctx, poller, token):
    ctx = make_ctx(job_id="")

    with pytest.raises(JobIdNotAssigned):
        poller.wait_for_completion(ctx, io.BytesIO())

    assert token.waits == 0


def test_abend_reported_after_fetch(server, make_ctx, poller):
    server.list_script = [["MYJOB    JOB12345 USER1    OUTPUT A        ABEND=S0C4 3 spool files"]]
    ctx = make_ctx()

    poller.wait_for_completion(ctx, io.BytesIO())

    assert ctx.handle.completion_code.kind == CompletionKind.ABEND


def test_log_fetched_once_after_aborted_transfer(server, make_ctx, poller, token):
    server.retr_script = [AbortedTransfer(JOB_LOG[:1], ReplyError("451 Transfer aborted")), JOB_LOG]
    ctx = make_ctx()
    sink = io.BytesIO()

    assert poller.wait_for_completion(ctx, sink) == PollState.DONE

    assert sink.getvalue().decode("latin-1").splitlines() == JOB_LOG
    assert token.waits == 2

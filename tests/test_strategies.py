import pytest

from app.core.errors import UpstreamError
from app.db.models.auth.otp import VerifyOutcome
from app.services.auth.otp_service import ProviderResult
from app.services.auth.strategies import DelegatedStrategy, LocalStoreStrategy, map_provider_reason
from app.services.auth.whatsapp_service import DeliveryResult
from tests.fakes import FakeProvider, FakeSender

PHONE = "9876543210"


@pytest.mark.parametrize("reason, outcome", [
    ("OTP Mismatch", VerifyOutcome.MISMATCH),
    ("OTP not matched", VerifyOutcome.MISMATCH),
    ("OTP Expired", VerifyOutcome.EXPIRED),
    ("No OTP request found for this number", VerifyOutcome.NOT_FOUND),
    ("Invalid API Key", VerifyOutcome.FAILED),
    ("", VerifyOutcome.FAILED),
    (None, VerifyOutcome.FAILED),
])
def test_map_provider_reason(reason, outcome):
    assert map_provider_reason(reason) is outcome


def test_delegated_verify_success():
    provider = FakeProvider()
    result = DelegatedStrategy(provider).verify(PHONE, "123456")
    assert result.valid is True
    assert provider.checked == [(PHONE, "123456")]


def test_delegated_expired_reason_is_reported_as_expired():
    provider = FakeProvider(check_result=ProviderResult(ok=False, reason="OTP Expired"))
    result = DelegatedStrategy(provider).verify(PHONE, "123456")
    assert result.outcome is VerifyOutcome.EXPIRED


def test_delegated_unreachable_verify_raises_upstream():
    provider = FakeProvider(check_result=ProviderResult(ok=False, reason="timeout", unreachable=True))
    with pytest.raises(UpstreamError) as exc:
        DelegatedStrategy(provider).verify(PHONE, "123456")
    assert exc.value.status_code == 503


def test_delegated_send_rejection_is_not_unreachable():
    provider = FakeProvider(send_result=ProviderResult(ok=False, reason="Invalid API Key"))
    with pytest.raises(UpstreamError) as exc:
        DelegatedStrategy(provider).send(PHONE)
    assert exc.value.unreachable is False
    assert exc.value.status_code == 400


def test_delegated_send_unreachable():
    provider = FakeProvider(send_result=ProviderResult(ok=False, unreachable=True))
    with pytest.raises(UpstreamError) as exc:
        DelegatedStrategy(provider).send(PHONE)
    assert exc.value.status_code == 503


def test_delegated_never_touches_store(store):
    store.put(PHONE, "4821")
    provider = FakeProvider(check_result=ProviderResult(ok=False, reason="No OTP request"))
    strategy = DelegatedStrategy(provider)

    strategy.send(PHONE)
    result = strategy.verify(PHONE, "4821")

    # A locally stored code does not satisfy the provider
    assert result.outcome is VerifyOutcome.NOT_FOUND
    assert store.get(PHONE).code == "4821"


def test_local_send_stores_delivered_code(store):
    sender = FakeSender()
    strategy = LocalStoreStrategy(store, sender)

    strategy.send(PHONE)

    code = sender.last_code
    assert len(code) == 4 and code.isdigit()
    assert store.get(PHONE).code == code
    assert strategy.verify(PHONE, code).valid is True
    assert strategy.verify(PHONE, code).outcome is VerifyOutcome.NOT_FOUND


def test_local_send_rolls_back_on_rejection(store):
    sender = FakeSender(DeliveryResult(ok=False, error_detail="bad receiver"))
    strategy = LocalStoreStrategy(store, sender)

    with pytest.raises(UpstreamError) as exc:
        strategy.send(PHONE)

    assert exc.value.status_code == 400
    assert PHONE not in store
    assert strategy.verify(PHONE, sender.last_code).outcome is VerifyOutcome.NOT_FOUND


def test_local_send_rolls_back_when_unreachable(store):
    sender = FakeSender(DeliveryResult(ok=False, error_detail="timeout", unreachable=True))

    with pytest.raises(UpstreamError) as exc:
        LocalStoreStrategy(store, sender).send(PHONE)

    assert exc.value.status_code == 503
    assert len(store) == 0


def test_local_send_rolls_back_on_sender_exception(store):
    sender = FakeSender(error=RuntimeError("boom"))

    with pytest.raises(RuntimeError):
        LocalStoreStrategy(store, sender).send(PHONE)

    assert len(store) == 0


def test_rollback_keeps_newer_code(store):
    class RacingSender(FakeSender):
        def deliver(self, phone, code):
            # Another request replaces the code while this delivery is in flight
            store.put(phone, "9999")
            return DeliveryResult(ok=False, error_detail="rejected")

    strategy = LocalStoreStrategy(store, RacingSender(), generate=lambda: "1111")

    with pytest.raises(UpstreamError):
        strategy.send(PHONE)

    assert store.get(PHONE).code == "9999"


def test_resend_replaces_pending_code(store):
    codes = iter(["1111", "2222"])
    strategy = LocalStoreStrategy(store, FakeSender(), generate=lambda: next(codes))

    strategy.send(PHONE)
    strategy.send(PHONE)

    assert strategy.verify(PHONE, "1111").outcome is VerifyOutcome.MISMATCH
    assert strategy.verify(PHONE, "2222").valid is True

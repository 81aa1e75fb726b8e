"""
Testes do armazenamento de sessões, vínculos e códigos de vinculação.
"""

from datetime import datetime, timedelta, timezone

from famli.core.session_store import WhatsAppSessionStore
from famli.models.whatsapp import DialogueState, PendingItem

PHONE = "+5511999999999"


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class TestSessions:

    def setup_method(self):
        self.clock = FakeClock()
        self.store = WhatsAppSessionStore(clock=self.clock)

    def test_unseen_phone_starts_idle(self):
        session = self.store.get_or_create(PHONE)

        assert session.phone_number == PHONE
        assert session.state == DialogueState.IDLE
        assert session.pending_item is None
        assert session.user_id is None
        assert session.created_at == self.clock.now

    def test_prefix_is_stripped(self):
        self.store.get_or_create(f"whatsapp:{PHONE}")
        assert self.store.get(PHONE) is not None

    def test_changes_only_persist_after_save(self):
        session = self.store.get_or_create(PHONE)
        session.start_draft(
            PendingItem(content="Cofre", type="note", title="Cofre"),
            DialogueState.AWAITING_CATEGORY,
        )

        assert self.store.get(PHONE).state == DialogueState.IDLE

        self.store.save(session)
        stored = self.store.get(PHONE)
        assert stored.state == DialogueState.AWAITING_CATEGORY
        assert stored.pending_item.content == "Cofre"

    def test_returned_sessions_are_independent_copies(self):
        first = self.store.get_or_create(PHONE)
        first.start_draft(
            PendingItem(content="A", type="note", title="A"),
            DialogueState.AWAITING_CATEGORY,
        )
        self.store.save(first)

        first.pending_item.title = "alterado depois do save"
        second = self.store.get_or_create(PHONE)

        assert second.pending_item.title == "A"

    def test_get_unknown_phone(self):
        assert self.store.get("+5511000000000") is None


class TestLinks:

    def setup_method(self):
        self.clock = FakeClock()
        self.store = WhatsAppSessionStore(clock=self.clock)

    def test_link_is_reflected_on_session(self):
        self.store.get_or_create(PHONE)
        self.store.link_phone(PHONE, "usr_1")

        assert self.store.get_or_create(PHONE).user_id == "usr_1"
        assert self.store.get_linked_user(PHONE) == "usr_1"
        assert self.store.get_linked_phone("usr_1") == PHONE

    def test_save_does_not_override_link(self):
        session = self.store.get_or_create(PHONE)
        self.store.link_phone(PHONE, "usr_1")

        # Cópia antiga, anterior ao vínculo
        self.store.save(session)

        assert self.store.get(PHONE).user_id == "usr_1"

    def test_user_keeps_only_one_phone(self):
        self.store.link_phone(PHONE, "usr_1")
        self.store.link_phone("+5521988887777", "usr_1")

        assert self.store.get_linked_user(PHONE) is None
        assert self.store.get_linked_phone("usr_1") == "+5521988887777"

    def test_unlink_user(self):
        self.store.get_or_create(PHONE)
        self.store.link_phone(PHONE, "usr_1")

        assert self.store.unlink_user("usr_1") == PHONE
        assert self.store.get_or_create(PHONE).user_id is None
        assert self.store.unlink_user("usr_1") is None

    def test_unlink_phone(self):
        self.store.link_phone(PHONE, "usr_1")

        assert self.store.unlink_phone(PHONE) is True
        assert self.store.unlink_phone(PHONE) is False


class TestLinkCodes:

    def setup_method(self):
        self.clock = FakeClock()
        self.store = WhatsAppSessionStore(clock=self.clock)

    def test_code_format(self):
        code = self.store.issue_link_code(PHONE, ttl_minutes=10)
        assert len(code) == 6
        assert code.isdigit()

    def test_code_is_single_use(self):
        code = self.store.issue_link_code(PHONE, ttl_minutes=10)

        assert self.store.consume_link_code(PHONE, code) is True
        assert self.store.consume_link_code(PHONE, code) is False

    def test_wrong_code_keeps_valid_one(self):
        code = self.store.issue_link_code(PHONE, ttl_minutes=10)
        wrong = "000000" if code != "000000" else "111111"

        assert self.store.consume_link_code(PHONE, wrong) is False
        assert self.store.consume_link_code(PHONE, code) is True

    def test_code_expires(self):
        code = self.store.issue_link_code(PHONE, ttl_minutes=10)
        self.clock.advance(minutes=10)

        assert self.store.consume_link_code(PHONE, code) is False

    def test_code_is_bound_to_phone(self):
        code = self.store.issue_link_code(PHONE, ttl_minutes=10)
        assert self.store.consume_link_code("+5521988887777", code) is False

    def test_non_ascii_code_is_rejected(self):
        code = self.store.issue_link_code(PHONE, ttl_minutes=10)

        assert self.store.consume_link_code(PHONE, "12345é") is False
        assert self.store.consume_link_code(PHONE, code) is True

    def test_formatted_phone_matches_issued_code(self):
        code = self.store.issue_link_code("whatsapp:+5511999999999", ttl_minutes=10)
        assert self.store.consume_link_code("+55 (11) 99999-9999", code) is True

"""Unit tests for share links and the share flow."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from botdesk.bots import (
    Bot,
    PendingShares,
    accept_share,
    build_share_invite,
    build_share_url,
    load_shared_draft,
    parse_share_path,
    resolve_share,
    resume_pending_share,
)
from botdesk.errors import NotAuthenticatedError, NotFoundError
from botdesk.identity import LocalIdentityProvider


class TestShareUrl:
    """Tests for building and parsing share links."""

    def test_build_share_url(self):
        """Test the link shape."""
        assert build_share_url("https://bots.example.com/", "abc123") == (
            "https://bots.example.com/share/abc123"
        )

    def test_parse_share_path(self):
        """Test extracting the bot id from a share path."""
        assert parse_share_path("/share/abc123") == "abc123"
        assert parse_share_path("/share/abc123/") == "abc123"
        assert parse_share_path("/share/") is None
        assert parse_share_path("/bots/abc123") is None

    @given(st.text(min_size=1))
    def test_bot_id_survives_link(self, bot_id: str):
        """Property test: any bot id can be recovered from its share link."""
        url = build_share_url("https://bots.example.com", bot_id)
        path = url.removeprefix("https://bots.example.com")
        assert parse_share_path(path) == bot_id

    def test_invite_defaults(self):
        """Test the invite text when the bot has no description."""
        bot = Bot(id="b1", owner_id="u1", name="", system_prompt="p")

        invite = build_share_invite("https://bots.example.com", bot)

        assert invite.title == "Check out this bot!"
        assert invite.text == "I found this interesting bot you might like."
        assert invite.url == "https://bots.example.com/share/b1"


class TestResolveShare:
    """Tests for where a share link leads."""

    def test_missing_bot_id_goes_home(self):
        """Test that a link without an id goes to the home page."""
        redirect = resolve_share(None, LocalIdentityProvider("alice"), PendingShares())
        assert redirect.target == "/"

    def test_signed_out_parks_share_and_goes_to_login(self):
        """Test that a signed-out visit remembers the bot and asks for login."""
        pending = PendingShares()

        redirect = resolve_share("b1", LocalIdentityProvider(), pending)

        assert redirect.target == "/login"
        assert pending.peek() == "b1"

    def test_signed_in_goes_to_creation_flow(self):
        """Test that a signed-in visit opens the pre-filled creation flow."""
        pending = PendingShares()

        redirect = resolve_share("b1", LocalIdentityProvider("alice"), pending)

        assert redirect.target == "/create-bot?sharedBot=b1"
        assert pending.peek() is None

    @pytest.mark.asyncio
    async def test_resume_after_login(self):
        """Test that signing in continues a parked share exactly once."""
        identity = LocalIdentityProvider()
        pending = PendingShares()
        resolve_share("b1", identity, pending)

        assert resume_pending_share(identity, pending) is None

        await identity.sign_in("alice")
        redirect = resume_pending_share(identity, pending)

        assert redirect.target == "/create-bot?sharedBot=b1"
        assert pending.peek() is None
        assert resume_pending_share(identity, pending) is None


class TestAcceptShare:
    """Tests for loading and accepting shared bots."""

    @pytest.mark.asyncio
    async def test_load_shared_draft(self, registry):
        """Test that the creation flow is pre-filled from the shared bot."""
        bot_id = await registry.create("bob", "Helper", "You are terse.")

        draft = await load_shared_draft(registry, bot_id)

        assert draft.name == "Helper"
        assert draft.system_prompt == "You are terse."
        assert draft.shared_from == bot_id

    @pytest.mark.asyncio
    async def test_accept_share_copies_for_signed_in_user(self, registry, identity):
        """Test that accepting creates the user's own copy."""
        bot_id = await registry.create("bob", "Helper", "You are terse.")

        copy = await accept_share(registry, identity, bot_id)

        assert copy.owner_id == "alice"
        assert copy.shared_from == bot_id
        assert [b.id for b in await registry.list_by_owner("alice")] == [copy.id]
        assert (await registry.get(bot_id)).owner_id == "bob"

    @pytest.mark.asyncio
    async def test_accept_share_requires_sign_in(self, registry):
        """Test that accepting while signed out is refused."""
        bot_id = await registry.create("bob", "Helper", "p")

        with pytest.raises(NotAuthenticatedError):
            await accept_share(registry, LocalIdentityProvider(), bot_id)

    @pytest.mark.asyncio
    async def test_accept_missing_bot(self, registry, identity):
        """Test that accepting a deleted bot raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await accept_share(registry, identity, "ghost")

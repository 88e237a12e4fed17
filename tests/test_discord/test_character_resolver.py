"""Tests for the character resolver and recency cache."""

import pytest

from npc_herald.discord.character_resolver import CharacterResolver
from npc_herald.discord.models import BotConfiguration, NPCProfile
from npc_herald.discord.recency import RecencyCache
from npc_herald.discord.store import InMemoryCampaignStore


def make_config(config_id, npc_id, channel_id=None):
    return BotConfiguration(
        id=config_id,
        world_id="w1",
        npc_id=npc_id,
        server_id="g1",
        channel_id=channel_id,
        name=config_id,
    )


class TestRecencyCache:
    """Test RecencyCache class."""

    def test_remember_and_get(self):
        """Test storing and reading an entry."""
        cache = RecencyCache()
        cache.remember("u1", "c1", "bot_a")
        assert cache.get("u1", "c1") == "bot_a"
        assert cache.get("u1", "c2") is None

    def test_keys_are_stringified(self):
        """Test int and str ids address the same entry."""
        cache = RecencyCache()
        cache.remember(1, 2, "bot_a")
        assert cache.get("1", "2") == "bot_a"

    def test_evict(self):
        """Test evicting an entry, including a missing one."""
        cache = RecencyCache()
        cache.remember("u1", "c1", "bot_a")
        cache.evict("u1", "c1")
        cache.evict("u1", "c1")
        assert cache.get("u1", "c1") is None

    def test_bounded(self):
        """Test least recently used entries are dropped."""
        cache = RecencyCache(maxsize=2)
        cache.remember("u1", "c1", "a")
        cache.remember("u2", "c1", "b")
        cache.get("u1", "c1")
        cache.remember("u3", "c1", "c")

        assert len(cache) == 2
        assert cache.get("u2", "c1") is None
        assert cache.get("u1", "c1") == "a"
        assert cache.maxsize == 2

    def test_zero_size_disables_cache(self):
        """Test a non-positive size remembers nothing instead of failing."""
        for size in (0, -5):
            cache = RecencyCache(maxsize=size)
            cache.remember("u1", "c1", "bot_a")
            assert cache.get("u1", "c1") is None
            assert len(cache) == 0


class TestCharacterResolver:
    """Test CharacterResolver class."""

    @pytest.fixture
    def store(self):
        """Create a store with NPCs Grak, Lyra and Al."""
        store = InMemoryCampaignStore()
        store.add_npc(NPCProfile(id="npc_grak", world_id="w1", name="Grak"))
        store.add_npc(NPCProfile(id="npc_lyra", world_id="w1", name="Lyra"))
        store.add_npc(NPCProfile(id="npc_al", world_id="w1", name="Al"))
        return store

    @pytest.fixture
    def resolver(self, store):
        """Create resolver instance."""
        return CharacterResolver(store, RecencyCache())

    @pytest.fixture
    def grak(self):
        return make_config("bot_grak", "npc_grak", channel_id="c1")

    @pytest.fixture
    def lyra(self):
        return make_config("bot_lyra", "npc_lyra")

    @pytest.mark.asyncio
    async def test_no_candidates(self, resolver):
        """Test empty candidates resolve to None."""
        assert await resolver.select_configuration([], "Hi", "u1", "c1") is None

    @pytest.mark.asyncio
    async def test_single_candidate(self, resolver, lyra):
        """Test a lone candidate is chosen and remembered."""
        result = await resolver.select_configuration([lyra], "Grak?", "u1", "c1")

        assert result == lyra
        assert resolver.cache.get("u1", "c1") == "bot_lyra"

    @pytest.mark.asyncio
    async def test_disabled_cache_still_resolves(self, store, grak, lyra):
        """Test a zero-size cache never blocks resolution."""
        resolver = CharacterResolver(store, RecencyCache(0))

        assert await resolver.select_configuration([lyra], "hi", "u1", "c1") == lyra
        result = await resolver.select_configuration([grak, lyra], "Hi there!", "u1", "c1")
        assert result == grak

    @pytest.mark.asyncio
    async def test_whole_word_match_regardless_of_order(self, resolver, grak, lyra):
        """Test the named NPC wins whichever order the candidates are in."""
        for candidates in ([grak, lyra], [lyra, grak]):
            result = await resolver.select_configuration(
                candidates, "Hey Grak, what's the news?", "u1", "c1"
            )
            assert result.id == "bot_grak"

    @pytest.mark.asyncio
    async def test_case_insensitive(self, resolver, grak, lyra):
        """Test names match regardless of case."""
        result = await resolver.select_configuration([grak, lyra], "LYRA!", "u1", "c1")
        assert result.id == "bot_lyra"

    @pytest.mark.asyncio
    async def test_whole_word_beats_substring(self, resolver, lyra):
        """Test a short name inside a longer word loses to a real mention."""
        al = make_config("bot_al", "npc_al")

        result = await resolver.select_configuration(
            [al, lyra], "The alchemist asked for Lyra", "u1", "c1"
        )

        assert result.id == "bot_lyra"

    @pytest.mark.asyncio
    async def test_substring_fallback(self, resolver, grak, lyra):
        """Test substring containment when no whole word matches."""
        result = await resolver.select_configuration(
            [grak, lyra], "Where is the Lyrarian?", "u1", "c1"
        )
        assert result.id == "bot_lyra"

    @pytest.mark.asyncio
    async def test_fallback_to_first(self, resolver, grak, lyra):
        """Test an unnamed message with an empty cache picks the first candidate."""
        result = await resolver.select_configuration([grak, lyra], "Hi there!", "u1", "c1")

        assert result.id == "bot_grak"
        assert resolver.cache.get("u1", "c1") == "bot_grak"

    @pytest.mark.asyncio
    async def test_recency_cache_keeps_conversation(self, resolver, grak, lyra):
        """Test a follow-up without a name goes to the last NPC."""
        await resolver.select_configuration([grak, lyra], "Lyra, hello", "u1", "c1")

        result = await resolver.select_configuration([grak, lyra], "And then?", "u1", "c1")

        assert result.id == "bot_lyra"

    @pytest.mark.asyncio
    async def test_cache_is_per_user_and_channel(self, resolver, grak, lyra):
        """Test other users and channels are unaffected."""
        await resolver.select_configuration([grak, lyra], "Lyra, hello", "u1", "c1")

        other_user = await resolver.select_configuration([grak, lyra], "Hi", "u2", "c1")
        other_channel = await resolver.select_configuration([grak, lyra], "Hi", "u1", "c2")

        assert other_user.id == "bot_grak"
        assert other_channel.id == "bot_grak"

    @pytest.mark.asyncio
    async def test_stale_cache_entry_evicted(self, resolver, grak, lyra):
        """Test a removed bot is not reused and its cache entry is replaced."""
        al = make_config("bot_al", "npc_al")
        await resolver.select_configuration([grak, lyra], "Lyra, hello", "u1", "c1")
        assert resolver.cache.get("u1", "c1") == "bot_lyra"

        # Lyra deactivated: no longer a candidate
        result = await resolver.select_configuration([al, grak], "Anyone?", "u1", "c1")

        assert result.id == "bot_al"
        assert resolver.cache.get("u1", "c1") == "bot_al"

    @pytest.mark.asyncio
    async def test_unloadable_npc_skipped(self, resolver, grak):
        """Test a candidate whose NPC is missing is skipped for name matching."""
        ghost = make_config("bot_ghost", "npc_missing")

        result = await resolver.select_configuration([ghost, grak], "Grak!", "u1", "c1")

        assert result.id == "bot_grak"

    def test_is_word_in_text(self, resolver):
        """Test whole-word matching."""
        assert resolver._is_word_in_text("al", "hi al!")
        assert not resolver._is_word_in_text("al", "alchemist")
        assert not resolver._is_word_in_text("", "anything")
        assert resolver._is_word_in_text("mr. b", "hey mr. b here")

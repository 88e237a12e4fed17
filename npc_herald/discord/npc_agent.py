"""NPC Agent for AI-controlled NPCs."""

import logging
from typing import Optional

from openai import AsyncOpenAI

from npc_herald.discord.models import (
    BotConfiguration,
    ConversationTurn,
    NPCProfile,
    World,
)

logger = logging.getLogger(__name__)


class NPCAgent:
    """Generates in-character replies for an NPC.

    The OpenAI client is passed in so one client can be shared by the bot
    and replaced in tests.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4o-mini",
        temperature: float = 0.8,
        max_tokens: int = 200,
    ):
        self.openai = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_system_prompt(self, npc: NPCProfile, world: World) -> str:
        """Build a system prompt for the NPC.

        Args:
            npc: The NPC being voiced.
            world: The world the NPC belongs to.

        Returns:
            System prompt string for LLM.
        """
        prompt_parts = [
            f"You are {npc.name}, a character in a role-playing game "
            f"set in the world of {world.name}."
        ]

        if world.description:
            prompt_parts.append(f"World Context: {world.description}")

        if npc.description:
            prompt_parts.append(f"Character Description: {npc.description}")

        prompt_parts.append(
            f"Stay in character as {npc.name}. Respond naturally and engagingly to "
            "the user's message, keeping in mind the world context and your "
            "character's place within it. Keep responses concise (1-3 sentences "
            "typically, but can be longer if the conversation warrants it). Be "
            "authentic to your character's personality, background, and the world "
            "they inhabit."
        )

        return "\n\n".join(prompt_parts)

    def build_messages(
        self,
        npc: NPCProfile,
        world: World,
        history: list[ConversationTurn],
        new_message: str,
    ) -> list[dict]:
        """Assemble the chat messages sent to the model."""
        messages = [{"role": "system", "content": self.build_system_prompt(npc, world)}]
        messages.extend(turn.as_message() for turn in history)
        messages.append({"role": "user", "content": new_message})
        return messages

    async def generate_reply(
        self,
        bot_config: BotConfiguration,
        npc: NPCProfile,
        world: World,
        history: list[ConversationTurn],
        new_message: str,
    ) -> Optional[str]:
        """Generate an in-character reply.

        Args:
            bot_config: Configuration the reply is for.
            npc: The NPC to voice.
            world: The NPC's world.
            history: Channel conversation, oldest first.
            new_message: The user's message without the bot mention.

        Returns:
            Reply text, or None when the model produced nothing usable.
        """
        messages = self.build_messages(npc, world, history, new_message)
        logger.info(
            f"Requesting reply for bot {bot_config.id} as {npc.name} "
            f"({len(history)} history turn(s))"
        )

        try:
            response = await self.openai.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.error(f"Error generating NPC response for {npc.name}: {e}")
            return None

        if not response.choices:
            logger.warning(f"No choices returned for {npc.name}")
            return None

        content = response.choices[0].message.content
        if not content or not content.strip():
            logger.warning(f"Empty response generated for {npc.name}")
            return None

        return content.strip()

"""
Tests for system prompt assembly (engine.prompts).

These tests verify that:
1. Wizard blocks (tone, use case, boundaries) render from the catalogs
2. Context and rules are split out of free text
3. Legacy personality joins choices with connective phrasing
4. The knowledge section only appears when content exists
5. Create and enrichment prompts differ only by the knowledge section
"""

from conftest import make_legacy_profile, make_wizard_profile
from catalog.personality import DEFAULT_BOUNDARY, DEFAULT_TONE, DEFAULT_USE_CASE
from engine import prompts
from engine.prompts import (
    DEFAULT_USER_CONTEXT,
    build_agent_profile,
    build_boundaries_block,
    build_knowledge_section,
    build_personality,
    build_system_prompt,
    build_tone_block,
    build_use_case_block,
    split_context_and_rules,
)
from engine.voices import resolve_voice

KNOWLEDGE = "WORK EXPERIENCE\nHead Baker, Sweet Rise Bakery (2015-2024)"


class TestWizardBlocks:

    def test_tone_default(self):
        assert build_tone_block([]) == DEFAULT_TONE
        assert build_tone_block(["Unknown"]) == DEFAULT_TONE

    def test_tone_single_trait(self):
        block = build_tone_block(["Witty"])
        assert "Witty and clever" in block
        assert "Balance these" not in block

    def test_tone_multiple_traits_numbered(self):
        block = build_tone_block(["Friendly", "Witty", "Blunt"])
        assert "1. Friendly and approachable" in block
        assert "3. Blunt and to-the-point" in block
        assert "Balance these 3 personality aspects naturally" in block

    def test_use_case(self):
        assert "Managing client and customer" in build_use_case_block("Clients & Customers")
        assert build_use_case_block("Something else") == DEFAULT_USE_CASE

    def test_boundaries(self):
        block = build_boundaries_block(["Don't share my location", "Don't share my schedule"])
        assert block.startswith("You must never reveal:\n1. ")
        assert "\n2. " in block
        assert "I'm not able to share that information" in block
        assert build_boundaries_block([]) == DEFAULT_BOUNDARY


class TestSplitContextAndRules:

    def test_rules_separated(self):
        context, rules = split_context_and_rules(
            "I'm a freelance designer.\nNever give out my address\nalways be polite\nNo sales calls please"
        )
        assert context == "I'm a freelance designer."
        assert rules == "Never give out my address\nalways be polite\nNo sales calls please"

    def test_empty_uses_default_context(self):
        assert split_context_and_rules("") == (DEFAULT_USER_CONTEXT, "")

    def test_only_rules_uses_default_context(self):
        context, rules = split_context_and_rules("Don't book meetings on Fridays")
        assert context == DEFAULT_USER_CONTEXT
        assert rules == "Don't book meetings on Fridays"


class TestLegacyPersonality:

    def test_free_text_wins(self):
        assert build_personality(["Direct & Brief"], "Chill and funny") == "Chill and funny"

    def test_default(self):
        assert build_personality([]) == "Warm, professional, and helpful"

    def test_multiple_choices_connected(self):
        personality = build_personality(["Friendly & Casual", "Direct & Brief"])
        assert "conversational. Additionally, Direct and efficient." in personality
        assert personality.endswith("Balance these 2 personality aspects naturally in conversation.")

    def test_description_text_left_untouched(self, monkeypatch):
        monkeypatch.setattr(prompts, "LEGACY_PERSONALITY_DESCRIPTIONS", {
            "Warm": "Warm and kind. Also, patient with callers.",
            "Brief": "Short answers.",
        })

        personality = build_personality(["Warm", "Brief"])

        assert personality.startswith(
            "Warm and kind. Also, patient with callers. Additionally, Short answers. Balance these 2"
        )

    def test_customization_options_in_catalog_order(self):
        personality = build_personality(
            ["Direct & Brief"],
            options=["Be more direct and to-the-point", "Match caller's energy level"],
        )
        behaviors = personality.split("Additional Behaviors:\n")[1].split("\n")
        assert behaviors == [
            "Match the caller's energy and communication style.",
            "Be direct and to-the-point. Get to the core of what the caller needs quickly.",
        ]


class TestKnowledgeSection:

    def test_empty_knowledge_omitted(self):
        assert build_knowledge_section("Jane Doe", "") == ""
        assert build_knowledge_section("Jane Doe", "   ") == ""

    def test_directives_included(self):
        section = build_knowledge_section("Jane Doe", KNOWLEDGE, "Only mention the bakery")
        assert "=== DETAILED INFORMATION ABOUT Jane Doe ===" in section
        assert KNOWLEDGE in section
        assert "Only mention the bakery" in section
        assert "NEVER make up, invent, or guess information" in section


class TestSystemPrompt:

    def test_wizard_prompt(self):
        prompt = build_system_prompt(make_wizard_profile())
        assert prompt.startswith("You are Ava, an AI assistant who answers calls on behalf of Jane Doe.")
        assert "Refer to the user as:\nJanie" in prompt
        assert "=== ADDITIONAL INSTRUCTIONS ===\nNever share my schedule." in prompt
        assert "I run a bakery." in prompt
        assert "DETAILED INFORMATION" not in prompt

    def test_legacy_prompt(self):
        prompt = build_system_prompt(make_legacy_profile())
        assert prompt.startswith("Identity & Context:\nYou are Kendall, the personal AI assistant for Jane Doe.")
        assert "I run a small bakery in Toronto." in prompt
        assert "Do not forward calls." in prompt

    def test_legacy_forwarding_rule(self):
        prompt = build_system_prompt(make_legacy_profile(forward_calls=True))
        assert "forward the call to Jane Doe's mobile number" in prompt

    def test_deterministic(self):
        profile = make_wizard_profile()
        assert build_system_prompt(profile, KNOWLEDGE) == build_system_prompt(profile, KNOWLEDGE)


class TestAgentProfile:

    def test_name_voice_and_forwarding(self):
        voice = resolve_voice("KM-03")
        profile = build_agent_profile(make_wizard_profile(), voice)
        assert profile.name == "My Ava - Jane Doe"
        assert profile.voice == voice
        assert profile.forwarding_phone_number == "+14165550199"

    def test_forwarding_omitted_when_number_unusable(self):
        profile = build_agent_profile(make_legacy_profile(forward_calls=True, mobile_number="555-0199"))
        assert profile.forwarding_phone_number is None

    def test_wizard_create_and_enrich_differ_only_by_knowledge(self):
        input_profile = make_wizard_profile(file_usage_instructions="Use for bio questions")
        created = build_agent_profile(input_profile)
        enriched = build_agent_profile(input_profile, knowledge=KNOWLEDGE)

        section = build_knowledge_section("Jane Doe", KNOWLEDGE, "Use for bio questions")
        assert enriched.system_prompt.replace(section, "", 1) == created.system_prompt
        assert (enriched.name, enriched.forwarding_phone_number) == (created.name, created.forwarding_phone_number)

    def test_legacy_create_and_enrich_differ_only_by_knowledge(self):
        input_profile = make_legacy_profile()
        created = build_agent_profile(input_profile)
        enriched = build_agent_profile(input_profile, knowledge=KNOWLEDGE)

        section = build_knowledge_section("Jane Doe", KNOWLEDGE)
        assert enriched.system_prompt.replace(f"\n\n{section}", "", 1) == created.system_prompt

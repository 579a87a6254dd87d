"""Tests for the Dialogue Orchestrator."""

import asyncio

import pytest
from lead_scoring.handoff_link import parse_handoff_link
from lead_scoring.models import LeadValidationError, Turn, TurnRole
from lead_scoring.scoring_model import LeadPriority
from llm.orchestrator import DialogueOrchestrator, TurnRequest
from llm.prompt_templates import PromptTemplates


def run_turn(orchestrator, lead, turns, is_first_turn=False):
    return asyncio.run(orchestrator.process(TurnRequest(lead=lead, turns=turns, is_first_turn=is_first_turn)))


class FailingAttendanceStore:
    async def append(self, record):
        raise ConnectionError("database unavailable")

    async def list(self):
        return []


class FailingScorer:
    def score(self, credit_type, turns, facts):
        raise RuntimeError("scoring bug")


# ── Greeting and validation ───────────────────────────

class TestGreeting:
    def test_first_turn_greeting_skips_generation(self, orchestrator, fake_generator, sample_lead):
        result = run_turn(orchestrator, sample_lead, [], is_first_turn=True)
        assert result.reply.startswith("Oi Maria! 😊")
        assert "consórcio de imóvel" in result.reply
        assert not result.should_end
        assert result.classification is None
        assert fake_generator.calls == []

    def test_greeting_quotes_initial_message(self, orchestrator, make_lead):
        lead = make_lead(message="Quero comprar meu primeiro apartamento")
        result = run_turn(orchestrator, lead, [], is_first_turn=True)
        assert "\"Quero comprar meu primeiro apartamento\"" in result.reply

    def test_invalid_lead_is_rejected_before_state(self, orchestrator, state_store, make_lead):
        with pytest.raises(LeadValidationError):
            run_turn(orchestrator, make_lead(email="maria-sem-arroba"), [], is_first_turn=True)
        assert len(state_store) == 0

    def test_blank_name_is_rejected(self, orchestrator, make_lead):
        with pytest.raises(LeadValidationError):
            run_turn(orchestrator, make_lead(name="  "), [], is_first_turn=True)


# ── Ongoing conversation ──────────────────────────────

class TestConversationTurn:
    def test_facts_are_collected_and_prompted(self, orchestrator, fake_generator, state_store, sample_lead, make_conversation):
        turns = make_conversation("Oi Maria!", "Estou pensando em uns 200 mil")
        result = run_turn(orchestrator, sample_lead, turns)

        assert not result.should_end
        assert result.reply == fake_generator.default
        assert state_store.get(sample_lead.identity).collected_facts.estimated_value == 200000

        call = fake_generator.calls[-1]
        assert "R$ 200.000" in call["system"]
        assert call["messages"][1] == {"role": "user", "content": "Estou pensando em uns 200 mil"}

    def test_facts_persist_across_turns(self, orchestrator, state_store, sample_lead, make_conversation):
        run_turn(orchestrator, sample_lead, make_conversation("Oi Maria!", "Uns R$ 150.000"))
        turns = make_conversation("Oi Maria!", "Uns R$ 150.000", "E o prazo?")
        run_turn(orchestrator, sample_lead, turns)
        state = state_store.get(sample_lead.identity)
        assert state.turn_count == 3
        assert state.collected_facts.estimated_value == 150000

    def test_wrap_up_nudge_after_six_turns(self, orchestrator, fake_generator, sample_lead, make_conversation):
        turns = make_conversation(
            "Oi!", "Olá", "Como posso ajudar?", "Queria entender melhor", "Claro!", "Como funciona?",
        )
        result = run_turn(orchestrator, sample_lead, turns)
        assert not result.should_end
        assert "Hora de finalizar" in fake_generator.calls[-1]["system"]

    def test_no_nudge_early(self, orchestrator, fake_generator, sample_lead, make_conversation):
        run_turn(orchestrator, sample_lead, make_conversation("Oi!", "Olá"))
        system = fake_generator.calls[-1]["system"]
        assert "IMPORTANTE: A conversa está avançada" not in system
        assert PromptTemplates.NOT_INFORMED in system

    def test_fabricated_amount_is_removed(self, orchestrator, fake_generator, sample_lead, make_conversation):
        fake_generator.replies = ["Legal! Com R$ 500.000 fica ótimo. Qual o prazo?"]
        turns = make_conversation("Oi Maria!", "Uns R$ 200.000")
        result = run_turn(orchestrator, sample_lead, turns)
        assert result.reply == "Legal! Qual o prazo?"
        assert result.metadata["verification_flags"] == ["fabricated_amount:500000"]


# ── Termination ───────────────────────────────────────

class TestTermination:
    def test_qualified_lead_gets_handoff(self, orchestrator, attendance_store, state_store, sample_lead, make_conversation):
        turns = make_conversation(
            "Oi Maria!", "Quero um imóvel de R$ 300.000", "Legal! Qual prazo?", "Pretendo comprar ano que vem",
        )
        result = run_turn(orchestrator, sample_lead, turns)

        assert result.should_end
        assert result.has_interest
        assert result.classification.score == 10.0
        assert result.classification.priority == LeadPriority.HIGH
        assert parse_handoff_link(result.handoff_link) == (10.0, LeadPriority.HIGH)
        assert result.handoff_link.startswith("https://wa.me/5585988887777?text=")
        assert "especialistas entrará em contato" in result.reply
        assert state_store.get(sample_lead.identity) is None

        records = asyncio.run(attendance_store.list())
        assert len(records) == 1
        assert records[0].whatsapp_link == result.handoff_link
        assert result.metadata["attendance_id"] == records[0].id

    def test_closing_remark_not_repeated(self, orchestrator, fake_generator, sample_lead, make_conversation):
        fake_generator.replies = ["Vou te passar para um especialista no WhatsApp! 😊"]
        turns = make_conversation("Oi Maria!", "Olá", "Posso te encaminhar?", "pode ser")
        result = run_turn(orchestrator, sample_lead, turns)
        assert result.should_end
        assert result.reply == "Vou te passar para um especialista no WhatsApp! 😊"

    def test_no_interest_is_penalized(self, orchestrator, fake_generator, sample_lead, make_conversation):
        fake_generator.replies = ["Tudo bem, Maria! Fico à disposição."]
        turns = make_conversation("Oi Maria!", "Na verdade não tenho interesse")
        result = run_turn(orchestrator, sample_lead, turns)

        assert result.should_end
        assert not result.has_interest
        # 5 base + 2 imóvel + 0.5 turns = 7.5, minus 5
        assert result.classification.score == 2.5
        assert result.classification.priority == LeadPriority.LOW
        assert result.reply == "Tudo bem, Maria! Fico à disposição."
        assert parse_handoff_link(result.handoff_link) == (2.5, LeadPriority.LOW)


# ── Failures ──────────────────────────────────────────

class TestFailures:
    def test_generation_failure_returns_fallback(self, orchestrator, fake_generator, state_store, sample_lead, make_conversation):
        fake_generator.fail = True
        turns = make_conversation("Oi Maria!", "Não tenho interesse, tchau")
        result = run_turn(orchestrator, sample_lead, turns)

        assert result.reply == PromptTemplates.FALLBACK_REPLY
        assert not result.should_end
        assert result.metadata["generation_failed"]
        assert state_store.get(sample_lead.identity) is not None

    def test_blank_reply_returns_fallback(self, orchestrator, fake_generator, sample_lead, make_conversation):
        fake_generator.replies = ["  \n"]
        result = run_turn(orchestrator, sample_lead, make_conversation("Oi Maria!", "Olá"))
        assert result.reply == PromptTemplates.FALLBACK_REPLY
        assert not result.should_end
        assert result.metadata["generation_failed"]

    def test_missing_generator_returns_fallback(self, state_store, sample_lead, make_conversation):
        orchestrator = DialogueOrchestrator(generator=None, state_store=state_store)
        result = run_turn(orchestrator, sample_lead, make_conversation("Oi Maria!", "Olá"))
        assert result.reply == PromptTemplates.FALLBACK_REPLY
        assert not result.should_end

    def test_scoring_failure_clears_state(self, fake_generator, state_store, sample_lead, make_conversation):
        orchestrator = DialogueOrchestrator(
            generator=fake_generator, state_store=state_store, scorer=FailingScorer(),
        )
        result = run_turn(orchestrator, sample_lead, make_conversation("Oi Maria!", "não quero"))
        assert result.reply == PromptTemplates.FALLBACK_REPLY
        assert not result.should_end
        assert state_store.get(sample_lead.identity) is None

    def test_persistence_failure_keeps_result(self, fake_generator, state_store, sample_lead, make_conversation):
        orchestrator = DialogueOrchestrator(
            generator=fake_generator,
            state_store=state_store,
            attendance_store=FailingAttendanceStore(),
        )
        result = run_turn(orchestrator, sample_lead, make_conversation("Oi Maria!", "não quero"))
        assert result.should_end
        assert result.handoff_link is not None
        assert "attendance_id" not in result.metadata

    def test_set_generator(self, state_store, fake_generator, sample_lead, make_conversation):
        orchestrator = DialogueOrchestrator(generator=None, state_store=state_store)
        orchestrator.set_generator(fake_generator)
        result = run_turn(orchestrator, sample_lead, make_conversation("Oi Maria!", "Olá"))
        assert result.reply == fake_generator.default


# ── End-to-end scenarios ──────────────────────────────

class TestScenarios:
    def test_value_and_urgency_on_second_turn_continue(self, orchestrator, state_store, sample_lead, make_conversation):
        turns = make_conversation("Oi Maria!", "quero saber sobre imóvel de R$150.000, é urgente")
        result = run_turn(orchestrator, sample_lead, turns)

        facts = state_store.get(sample_lead.identity).collected_facts
        assert facts.estimated_value == 150000
        assert facts.timeline == "urgente"
        assert not result.should_end

    def test_thanks_with_no_interest_on_third_turn(self, orchestrator, sample_lead):
        turns = [
            Turn(role=TurnRole.LEAD, content="Oi"),
            Turn(role=TurnRole.AGENT, content="Oi Maria! Me conta mais?"),
            Turn(role=TurnRole.LEAD, content="não tenho interesse, obrigado"),
        ]
        result = run_turn(orchestrator, sample_lead, turns)
        assert result.should_end
        assert not result.has_interest
        assert result.classification.score == 2.5
        assert result.classification.priority == LeadPriority.LOW

    def test_new_conversation_after_termination_starts_empty(self, orchestrator, state_store, sample_lead, make_conversation):
        run_turn(orchestrator, sample_lead, make_conversation("Oi Maria!", "Uns R$ 200.000, não quero agora"))
        assert state_store.get(sample_lead.identity) is None

        run_turn(orchestrator, sample_lead, [], is_first_turn=True)
        state = state_store.get(sample_lead.identity)
        assert state.turn_count == 0
        assert state.collected_facts.estimated_value is None

    @pytest.mark.parametrize("locked,expected", [
        # the second turn waits outside until the first one finishes
        (True, (1, 2)),
        # without the lock both turns reach the generator together
        (False, (2, 3)),
    ])
    def test_turns_of_one_lead_are_serialized(self, orchestrator, fake_generator, state_store, sample_lead, make_conversation, locked, expected):
        short = make_conversation("Oi Maria!", "Olá")
        longer = make_conversation("Oi Maria!", "Olá", "Como posso ajudar?")

        async def turn(turns):
            request = TurnRequest(lead=sample_lead, turns=turns)
            if not locked:
                return await orchestrator.process(request)
            async with state_store.lock(sample_lead.identity):
                return await orchestrator.process(request)

        async def run():
            fake_generator.gate = asyncio.Event()
            first = asyncio.create_task(turn(short))
            second = asyncio.create_task(turn(longer))
            for _ in range(5):
                await asyncio.sleep(0)
            in_flight = (len(fake_generator.calls), state_store.get(sample_lead.identity).turn_count)
            fake_generator.gate.set()
            results = await asyncio.gather(first, second)
            return in_flight, results

        in_flight, results = asyncio.run(run())
        assert in_flight == expected
        assert [r.should_end for r in results] == [False, False]
        assert state_store.get(sample_lead.identity).turn_count == 3

    def test_replayed_shorter_history_keeps_turn_count(self, orchestrator, state_store, sample_lead, make_conversation):
        run_turn(orchestrator, sample_lead, make_conversation("Oi Maria!", "Olá", "Como posso ajudar?"))
        run_turn(orchestrator, sample_lead, make_conversation("Oi Maria!", "Olá"))
        assert state_store.get(sample_lead.identity).turn_count == 3

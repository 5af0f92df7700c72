from sanctuary.services.content import (
    generate_marketing_strategy, generate_proposal_content, intake_questions, investment_totals,
)


def test_proposal_content_prices_services():
    content = generate_proposal_content("Serenity Foundation", "Non-Profit",
                                        ["Corporate Wellness Program", "Integration Coaching"])
    assert [line["item"] for line in content["investment"]] == ["Corporate Wellness Program", "Integration Coaching"]
    assert investment_totals(content) == {"upfront": 5000.0, "retainer": 6000.0}
    assert content["hero"]["title"] == "Wellness Proposal for Serenity Foundation"
    assert content["phases"][1]["title"] == "Phase 2: Integration Coaching"


def test_unknown_service_uses_default_pricing():
    content = generate_proposal_content("Acme", "", ["Forest Bathing"])
    assert investment_totals(content) == {"upfront": 2500.0, "retainer": 0.0}
    assert content["engine"]["description"] == "Holistic wellness plan."


def test_intake_questions_follow_services():
    assert [q["id"] for q in intake_questions(["Retreat Stay"])] == ["goal"]
    assert [q["id"] for q in intake_questions(["SEO Audit", "Social Ads", "Email Funnel"])] == [
        "goal", "keywords", "social_tone", "email_offer",
    ]


def test_marketing_strategy_channels():
    strategy = generate_marketing_strategy("Apex", {"goal": "double bookings", "keywords": "yoga retreat"})
    assert strategy["channels"] == ["Website", "Referral Partnerships", "Organic Search"]
    assert "double bookings" in strategy["executive_summary"]
    assert strategy["brand_voice"] == "Calm, warm and assured"

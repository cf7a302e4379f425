from app.nl2sql.prompt import EXAMPLES, RULES, build_prompt
from app.nl2sql.schema import ORDERS_SCHEMA


def test_schema_renders_every_column():
    text = ORDERS_SCHEMA.render()
    assert text.startswith("DATABASE SCHEMA:")
    assert "Table: Orders" in text
    for name in ORDERS_SCHEMA.column_names:
        assert f"- {name} (" in text
    assert "- OrderID (int, Primary Key, Auto-increment)" in text
    assert "- ShippingCity (nvarchar(100), NULL) - City where order ships to" in text
    assert "- CustomerName (nvarchar(100), NOT NULL) - Name of the customer" in text
    assert "25 orders total" in text


def test_system_prompt_carries_schema_rules_and_examples():
    prompt = build_prompt("How many orders in the last 7 days?", ORDERS_SCHEMA)

    assert ORDERS_SCHEMA.render() in prompt.system
    for number, rule in enumerate(RULES, start=1):
        assert f"{number}. {rule}" in prompt.system
    for question, sql in EXAMPLES:
        assert f'Question: "{question}"' in prompt.system
        assert f"SQL: {sql}" in prompt.system
    assert "DATEADD" in prompt.system
    assert "TOP" in prompt.system
    assert prompt.system.rstrip().endswith("Now convert this question to SQL:")


def test_question_is_a_separate_untouched_turn():
    question = "  Top 5 customers by spending?? "
    prompt = build_prompt(question, ORDERS_SCHEMA)

    assert question not in prompt.system
    assert prompt.to_messages() == [
        {"role": "system", "content": prompt.system},
        {"role": "user", "content": question},
    ]


def test_prompt_is_pure():
    assert build_prompt("Orders by category", ORDERS_SCHEMA) == build_prompt(
        "Orders by category", ORDERS_SCHEMA
    )

import pytest

from advisor import IMAGE_RESPONSES, TEXT_RESPONSES, analyze_image, answer_text_query, classify_query


@pytest.mark.parametrize("query, route", [
    ("My tomato leaves have a white MOLD on them", "disease"),
    ("Small green insects under the leaves", "pest"),
    ("Leaves are turning yellow from the bottom", "nutrient"),
    ("When should I plant wheat this season?", "weather"),
    ("Fungus and bugs everywhere", "disease"),
])
def test_classify_query(query, route):
    assert classify_query(query) == route


def test_answer_is_a_fresh_copy():
    first = answer_text_query("pest problem in my field")
    first["recommendations"].append("changed")
    second = answer_text_query("pest problem in my field")
    assert second["recommendations"] == TEXT_RESPONSES["pest"]["recommendations"]
    assert second["category"] == "pest_identification"
    assert second["aiModel"] == "keyword-matcher"


def test_analyze_image_uses_chooser():
    result = analyze_image("/tmp/leaf.jpg", chooser=lambda options: options[1])
    assert result["text"] == IMAGE_RESPONSES[1]["text"]
    assert result["category"] == "general_question"

def _as_text(value) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _is_blank(value) -> bool:
    return value is None or value == ''


def normalize_answer(answer):
    """
    Canonical form of one buffered answer, or ``None`` when there is nothing
    worth submitting. Multi-select answers become a de-duplicated list of
    strings in first-seen order; everything else becomes a string.
    """
    if _is_blank(answer):
        return None
    if isinstance(answer, (list, tuple)):
        values = []
        for value in answer:
            if _is_blank(value):
                continue
            text = _as_text(value)
            if text not in values:
                values.append(text)
        return values or None
    return _as_text(answer)


def normalize_answers(raw_answers) -> dict:
    normalized = {}
    for question_id, answer in (raw_answers or {}).items():
        value = normalize_answer(answer)
        if value is not None:
            normalized[str(question_id)] = value
    return normalized

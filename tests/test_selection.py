from scour.selection import SelectionModel
from scour.state import SearchMatch


def _matches(n: int) -> list[SearchMatch]:
    return [SearchMatch(file=f"f{i}.txt", line=i + 1, column=1, content="x") for i in range(n)]


def test_toggle_flips_only_that_index():
    matches = _matches(4)
    model = SelectionModel(matches)

    assert model.toggle(2) is True

    assert [m.selected for m in matches] == [True, True, False, True]
    model.toggle(2)
    assert all(m.selected for m in matches)


def test_toggle_out_of_range_is_noop():
    matches = _matches(2)
    model = SelectionModel(matches)

    assert model.toggle(5) is False
    assert model.toggle(-1) is False
    assert all(m.selected for m in matches)


def test_select_all_and_none():
    matches = _matches(3)
    model = SelectionModel(matches)

    model.select_none()
    assert len(model.selected_items()) == 0

    model.select_all()
    assert len(model.selected_items()) == len(matches)


def test_selected_items_preserves_order():
    matches = _matches(5)
    model = SelectionModel(matches)
    model.toggle(1)
    model.toggle(3)

    assert [m.file for m in model.selected_items()] == ["f0.txt", "f2.txt", "f4.txt"]
    assert model.summary() == "3/5 selected"


def test_works_on_the_borrowed_list():
    matches = _matches(2)
    model = SelectionModel(matches)
    matches.append(SearchMatch(file="late.txt", line=1, column=1))

    model.select_none()

    assert matches[2].selected is False
    assert len(model) == 3

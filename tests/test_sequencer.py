import random

from sequencer import (
    EventKind,
    build_events,
    entry_range,
    group_entries,
    sequence_entries,
)


def _numbers(entries):
    return [n for e in entries for n in (e.request_number, e.response_number) if n is not None]


def test_build_events_skips_missing_timestamps(entry_factory):
    entries = [entry_factory(1, request=0), entry_factory(2), entry_factory(3, request=1, response=2)]
    events = build_events(entries)
    assert [(ev.entry_id, ev.kind) for ev in events] == [
        ("entry-1", EventKind.REQUEST),
        ("entry-3", EventKind.REQUEST),
        ("entry-3", EventKind.RESPONSE),
    ]


def test_sequence_scenario_a(entry_factory):
    a = entry_factory(1, request=0, label="A | Req")
    b = entry_factory(2, response=1, label="B | Resp")
    a, b = sequence_entries([a, b])
    assert (a.request_number, a.response_number) == (1, None)
    assert (b.request_number, b.response_number) == (None, 2)


def test_sequence_full_renumbering_on_earlier_insert(entry_factory):
    first = entry_factory(1, request=10)
    (first,) = sequence_entries([first])
    assert first.request_number == 1

    later_submitted = entry_factory(2, response=5)
    first, later_submitted = sequence_entries([first, later_submitted])
    assert later_submitted.response_number == 1
    assert first.request_number == 2


def test_sequence_entry_without_events_gets_no_numbers(entry_factory):
    (entry,) = sequence_entries([entry_factory(1)])
    assert entry.request_number is None and entry.response_number is None


def test_sequence_ties_follow_creation_order(entry_factory):
    entries = sequence_entries([
        entry_factory(1, request=3, response=3),
        entry_factory(2, request=3),
        entry_factory(3, response=0),
    ])
    assert [(e.request_number, e.response_number) for e in entries] == [(2, 3), (4, None), (None, 1)]


def test_sequence_dense_and_monotonic(entry_factory):
    rng = random.Random(7)
    entries = []
    for seq in range(1, 40):
        request = rng.choice([None, rng.randint(0, 50)])
        response = rng.choice([None, rng.randint(0, 50)])
        entries.append(entry_factory(seq, request=request, response=response))

    numbered = sequence_entries(entries)
    numbers = _numbers(numbered)
    assert sorted(numbers) == list(range(1, len(build_events(entries)) + 1))

    events = []
    for e in numbered:
        for kind in EventKind:
            if e.number_for(kind) is not None:
                events.append((e.timestamp_for(kind), e.number_for(kind)))
    for t1, n1 in events:
        for t2, n2 in events:
            if t1 < t2:
                assert n1 < n2


def test_sequence_does_not_mutate_input(entry_factory):
    original = entry_factory(1, request=0)
    sequence_entries([original])
    assert original.request_number is None


def test_entry_range(entry_factory):
    a, b, c = sequence_entries([entry_factory(1, request=0, response=5), entry_factory(2, response=1), entry_factory(3)])
    assert entry_range(a) == (1, 3)
    assert entry_range(b) == (2, 2)
    assert entry_range(c) is None


def test_group_single_number_ranges_do_not_touch(entry_factory):
    entries = sequence_entries([entry_factory(1, request=0), entry_factory(2, response=1)])
    groups = group_entries(entries)
    # [1,1] and [2,2] are adjacent but do not overlap
    assert [(g.min_number, g.max_number) for g in groups] == [(1, 1), (2, 2)]


def test_group_scenario_a_with_paired_entry(entry_factory):
    entries = sequence_entries([entry_factory(1, request=0, response=1)])
    (group,) = group_entries(entries)
    assert (group.min_number, group.max_number) == (1, 2)


def test_group_scenario_c_singleton_for_unnumbered(entry_factory):
    entries = sequence_entries([entry_factory(1, request=0, response=1), entry_factory(2), entry_factory(3)])
    groups = group_entries(entries)
    assert len(groups) == 3
    assert [g.entries[0].id for g in groups] == ["entry-1", "entry-2", "entry-3"]
    assert groups[1].min_number is None and groups[2].max_number is None


def test_group_scenario_d(entry_factory):
    # ranks: a=[1,3], b=[2,4], c=[10,12]
    a = entry_factory(1, request=1, response=3)
    b = entry_factory(2, request=2, response=4)
    fillers = [entry_factory(10 + i, request=5 + i) for i in range(5)]
    c = entry_factory(3, request=10, response=12)
    d = entry_factory(4, request=11)
    entries = sequence_entries([a, b, c, d] + fillers)
    by_id = {e.id: e for e in entries}
    assert entry_range(by_id["entry-1"]) == (1, 3)
    assert entry_range(by_id["entry-2"]) == (2, 4)
    assert entry_range(by_id["entry-3"]) == (10, 12)

    groups = group_entries(entries)
    first = groups[0]
    assert [e.id for e in first.entries] == ["entry-1", "entry-2"]
    assert (first.min_number, first.max_number) == (1, 4)
    last = groups[-1]
    assert [e.id for e in last.entries] == ["entry-3", "entry-4"]
    assert (last.min_number, last.max_number) == (10, 12)


def test_group_adjacent_ranges_stay_apart(entry_factory):
    # x=[1,2], w=[3,3], y=[4,7], z=[5,6]: w touches neither neighbour
    x = entry_factory(1, request=1, response=2)
    y = entry_factory(2, request=4, response=7)
    z = entry_factory(3, request=5, response=6)
    w = entry_factory(4, request=3)
    entries = sequence_entries([x, y, z, w])
    ranges = {e.id: entry_range(e) for e in entries}
    assert ranges == {"entry-1": (1, 2), "entry-2": (4, 7), "entry-3": (5, 6), "entry-4": (3, 3)}

    groups = group_entries(entries)
    assert [[e.id for e in g.entries] for g in groups] == [["entry-1"], ["entry-4"], ["entry-2", "entry-3"]]


def test_group_widening_swallows_later_ranges(entry_factory):
    # a=[1,4] opens a group, b=[2,2] joins, c=[3,3] joins the widened group
    a = entry_factory(1, request=1, response=4)
    b = entry_factory(2, request=2)
    c = entry_factory(3, response=3)
    groups = group_entries(sequence_entries([c, b, a]))
    assert len(groups) == 1
    assert [e.id for e in groups[0].entries] == ["entry-1", "entry-2", "entry-3"]


def test_group_chains_ranges_that_do_not_overlap_pairwise(entry_factory):
    # a=[1,3], b=[2,5], c=[4,6]: a and c only connect through b
    a = entry_factory(1, request=1, response=3)
    b = entry_factory(2, request=2, response=5)
    c = entry_factory(3, request=4, response=6)
    (group,) = group_entries(sequence_entries([a, b, c]))
    assert [e.id for e in group.entries] == ["entry-1", "entry-2", "entry-3"]
    assert (group.min_number, group.max_number) == (1, 6)


def test_group_coverage_and_containment(entry_factory):
    rng = random.Random(11)
    entries = [
        entry_factory(seq, request=rng.choice([None, rng.randint(0, 60)]), response=rng.choice([None, rng.randint(0, 60)]))
        for seq in range(1, 50)
    ]
    numbered = sequence_entries(entries)
    groups = group_entries(numbered)

    member_ids = [e.id for g in groups for e in g.entries]
    assert sorted(member_ids) == sorted(e.id for e in numbered)
    assert len(member_ids) == len(set(member_ids))

    for g in groups:
        for e in g.entries:
            rng_e = entry_range(e)
            if rng_e is None:
                assert len(g.entries) == 1 and g.min_number is None
            else:
                assert g.min_number <= rng_e[0] and rng_e[1] <= g.max_number

    mins = [g.min_number for g in groups if g.min_number is not None]
    assert mins == sorted(mins)


def test_group_empty():
    assert group_entries([]) == []
    assert sequence_entries([]) == []

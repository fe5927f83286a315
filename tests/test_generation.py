"""Tests for the generation engine."""

import random
from collections import Counter

import pytest

from morbitgen.core.models import Attribute, Chance, Requirement, RequirementError, Template
from morbitgen.generation import (
    DiagnosticKind,
    Diagnostics,
    add_requirements,
    contains,
    generate,
    generate_many,
    get_requirements,
    run_generator,
)
from morbitgen.generation.choice import choose_from_tiers, group_by_chance


def _template(attributes, order=None) -> Template:
    return Template.from_dict(
        {"order": order if order is not None else list(attributes), "attributes": attributes}
    )


COPY_TEMPLATE = {
    "flavor": {"choose": {"a": {}, "b": {}, "c": {}}},
    "flavor copy": {"copy": "flavor"},
}


class TestChoice:
    """Tests for chance tiers and weighted selection."""

    def _options(self, **chances):
        return [
            (name, Attribute(chance=Chance.parse(c) if c else None))
            for name, c in chances.items()
        ]

    def test_unset_chance_is_standard(self):
        assert group_by_chance(self._options(a=None)) == {Chance.STANDARD: ["a"]}

    def test_never_is_skipped(self):
        tiers = group_by_chance(self._options(a="Never", b="Rare"))
        assert tiers == {Chance.RARE: ["b"]}

    def test_always_short_circuits(self):
        tiers = group_by_chance(self._options(a="Common", b="Always", c="Always"))
        assert tiers == {Chance.STANDARD: ["b"]}

    def test_only_never_is_empty(self):
        assert group_by_chance(self._options(a="Never")) == {}

    def test_weighted_draw_favours_common(self):
        rng = random.Random(0)
        tiers = {Chance.EXTREMELY_COMMON: ["common"], Chance.EXTREMELY_RARE: ["rare"]}
        counts = Counter(choose_from_tiers(tiers, rng) for _ in range(2000))
        assert counts["common"] > 1800
        assert counts["rare"] > 0


class TestGenerate:
    """Tests for generate() against the bundled templates."""

    def test_every_ordered_attribute_considered(self, base):
        generated = generate(base, seed=1)
        for name in ("flavor", "size", "head casing", "eye shape", "limb count"):
            assert name in generated
        # "color" is not in order, only reused
        assert "color" not in generated

    def test_seed_is_deterministic(self, obj):
        assert generate(obj, seed=99) == generate(obj, seed=99)

    def test_rng_and_seed_agree(self, obj):
        assert generate(obj, rng=random.Random(5)) == generate(obj, seed=5)

    def test_preset_is_kept(self, base):
        for seed in range(25):
            generated = generate(base, ["flavor:normal"], seed=seed)
            assert generated["flavor"] == "normal"
            assert generated["temperament"] != "fiery"
            assert generated["head casing"] != "spiked"

    def test_always_option_wins(self, base):
        for seed in range(10):
            assert generate(base, ["flavor:spicy"], seed=seed)["temperament"] == "fiery"

    def test_requires_gate_attribute(self, base):
        for seed in range(25):
            generated = generate(base, seed=seed)
            if generated["eye shape"] == "no":
                assert "pupil" not in generated
            else:
                assert "pupil" in generated
            if generated["roll head casing color"] == "no":
                assert "head casing color" not in generated

    def test_negated_preset_denies_value(self, base):
        for seed in range(25):
            generated = generate(base, ["!flavor:normal", "!eye shape:no"], seed=seed)
            assert generated["flavor"] == "spicy"
            assert generated["eye shape"] != "no"
            assert "pupil" in generated

    def test_preset_through_reuse_pulls_requirements(self, base):
        generated = generate(base, ["head casing color:gold"], seed=3)
        assert generated["head casing color"] == "gold"
        assert generated["roll head casing color"] == "yes"

    def test_preset_through_copy_pulls_source(self, obj):
        generated = generate(obj, ["glow:red"], seed=4)
        assert generated["glow"] == "red"
        assert generated["head casing color"] == "red"
        assert generated["roll head casing color"] == "yes"

    def test_copy_follows_source(self, obj):
        for seed in range(10):
            generated = generate(obj, ["roll head casing color:yes"], seed=seed)
            assert generated["glow"] == generated["head casing color"]

    def test_renamed_attribute_generated(self, obj):
        generated = generate(obj, seed=8)
        assert "scale" in generated
        assert "size" not in generated
        assert generated["material"] in {"flesh", "chitin", "metal"}

    def test_malformed_preset_raises(self, base):
        with pytest.raises(RequirementError):
            generate(base, ["a:b:c"], seed=1)

    def test_template_generate_method(self, base):
        assert base.generate(["flavor:spicy"], seed=2) == generate(base, ["flavor:spicy"], seed=2)


class TestSameAndChoose:
    def test_copy_matches(self):
        template = _template(COPY_TEMPLATE)
        for seed in range(10):
            generated = generate(template, seed=seed)
            assert generated["flavor copy"] == generated["flavor"]

    def test_preset_on_copy_forces_source(self):
        template = _template(COPY_TEMPLATE)
        generated = generate(template, ["flavor copy:b"], seed=0)
        assert generated == {"flavor": "b", "flavor copy": "b"}

    def test_copy_before_source_produces_nothing(self):
        template = _template(COPY_TEMPLATE, order=["flavor copy", "flavor"])
        generated = generate(template, seed=0)
        assert "flavor copy" not in generated

    def test_never_option_not_chosen(self):
        template = _template({"x": {"choose": {"a": {"chance": "Never"}, "b": {}}}})
        for seed in range(20):
            assert generate(template, seed=seed) == {"x": "b"}

    def test_no_eligible_option_leaves_absent(self):
        template = _template({"x": {"choose": {"a": {"requires": "y:1"}}}})
        assert generate(template, seed=0) == {}

    def test_choose_keeps_existing_value(self, base):
        generator = base.attributes["flavor"].generator
        for seed in range(20):
            generated = {"flavor": "spicy"}
            run_generator(
                generator,
                "flavor",
                generated,
                {},
                base.attributes,
                random.Random(seed),
                Diagnostics(),
            )
            assert generated == {"flavor": "spicy"}

    def test_nested_choose(self):
        template = _template(
            {"x": {"choose": {"outer": {"choose": {"inner": {}}}}}}
        )
        assert generate(template, seed=0) == {"x": "inner"}


class TestDiagnostics:
    """Tests for soft failures recorded during generation."""

    def test_unresolvable_preset(self, base, caplog):
        diagnostics = Diagnostics()
        with caplog.at_level("WARNING"):
            generated = generate(
                base, ["flavor:normal", "flavor:spicy"], seed=0, diagnostics=diagnostics
            )
        # presets are applied last-first
        assert generated["flavor"] == "spicy"
        events = diagnostics.of_kind(DiagnosticKind.UNRESOLVED_REQUIREMENT)
        assert len(events) == 1
        assert events[0].requirement == "flavor:normal"
        assert "Unable to find valid possibility" in caplog.text

    def test_missing_attribute_in_order(self):
        template = _template({}, order=["ghost"])
        diagnostics = Diagnostics()
        assert generate(template, seed=0, diagnostics=diagnostics) == {}
        assert [e.kind for e in diagnostics] == [DiagnosticKind.MISSING_ATTRIBUTE]
        assert diagnostics.events[0].attribute == "ghost"

    def test_missing_reuse_target(self):
        template = _template({"a": {"reuse": "ghost"}})
        diagnostics = Diagnostics()
        generate(template, seed=0, diagnostics=diagnostics)
        assert [e.kind for e in diagnostics] == [DiagnosticKind.MISSING_REFERENCE]

    def test_reuse_cycle_is_bounded(self):
        template = _template({"a": {"reuse": "b"}, "b": {"reuse": "a"}}, order=["a"])
        diagnostics = Diagnostics()
        generated = generate(
            template, seed=0, diagnostics=diagnostics, max_reference_depth=3
        )
        assert generated == {}
        assert [e.kind for e in diagnostics] == [DiagnosticKind.REFERENCE_DEPTH_EXCEEDED]

    def test_reference_depth_from_config(self, monkeypatch):
        from morbitgen.config import reset_config

        monkeypatch.setenv("MORBITGEN_MAX_REFERENCE_DEPTH", "2")
        reset_config()
        template = _template({"a": {"reuse": "b"}, "b": {"reuse": "a"}}, order=["a"])
        diagnostics = Diagnostics()
        generate(template, seed=0, diagnostics=diagnostics)
        assert "reference depth 2" in diagnostics.events[0].message

    def test_callback_receives_events(self):
        received = []
        diagnostics = Diagnostics(callback=received.append)
        generate(_template({}, order=["ghost"]), seed=0, diagnostics=diagnostics)
        assert len(received) == 1
        assert received[0].kind == DiagnosticKind.MISSING_ATTRIBUTE


class TestAddRequirements:
    """Tests for preset propagation."""

    def test_delayed_alternative_satisfied_by_later_requirement(self):
        for seed in range(10):
            generated, denied = {}, {}
            add_requirements(
                [Requirement.parse("a:x"), Requirement.parse("a:x|b:y")],
                generated,
                denied,
                {},
                random.Random(seed),
            )
            assert generated == {"a": "x"}

    def test_alternative_alone_picks_one(self):
        generated = {}
        add_requirements(
            [Requirement.parse("a:x|b:y")], generated, {}, {}, random.Random(1)
        )
        assert generated in ({"a": "x"}, {"b": "y"})

    def test_negated_adds_denial(self):
        denied = {}
        add_requirements([Requirement.parse("!a:x")], {}, denied, {}, random.Random(0))
        assert denied == {"a": ["x"]}

    def test_get_requirements_for_option(self, base):
        attribute = base.attributes["head casing"]
        assert get_requirements(attribute, "spiked", base.attributes) == [
            Requirement.of("flavor", "spicy")
        ]
        assert get_requirements(attribute, "smooth", base.attributes) == []

    def test_contains(self, base):
        attributes = base.attributes
        reuse = attributes["head casing color"].generator
        assert contains(reuse, "gold", attributes)
        assert not contains(reuse, "plaid", attributes)


class TestAlways:
    def test_always_chance(self, base):
        assert base.always("temperament", "fiery")
        assert not base.always("flavor", "normal")

    def test_sole_option(self):
        template = _template({"x": {"choose": {"only": {}}}})
        assert template.always("x", "only")

    def test_through_reuse(self, base):
        assert not base.always("head casing color", "red")

    def test_unknown_attribute(self, base):
        assert not base.always("ghost", "x")


class TestGenerateMany:
    """Tests for batch generation."""

    def test_count_and_meta(self, obj):
        batch = generate_many(obj, ["flavor:sour"], count=4, seed=11)
        assert len(batch.results) == 4
        assert all(r["flavor"] == "sour" for r in batch.results)
        assert batch.meta["seed"] == 11
        assert batch.meta["presets"] == ["flavor:sour"]

    def test_reproducible(self, obj):
        first = generate_many(obj, count=5, seed=3).results
        second = generate_many(obj, count=5, seed=3).results
        assert first == second

    def test_random_seed_recorded(self, obj):
        batch = generate_many(obj, count=1)
        assert isinstance(batch.meta["seed"], int)

    def test_progress_callback(self, obj):
        calls = []
        generate_many(obj, count=3, seed=1, on_progress=lambda c, t: calls.append((c, t)))
        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_diagnostics_collected_per_run(self, base):
        batch = generate_many(base, ["flavor:normal", "flavor:spicy"], count=3, seed=0)
        assert len(batch.diagnostics) == 3

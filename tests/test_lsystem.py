import math

import numpy as np
import pytest

from fractal_engine import (
    PreconditionError,
    RecordingSurface,
    StackUnderflowError,
    branching_rules,
    check_brackets,
    expand,
    interpret,
    palette,
)
from fractal_engine.lsystem import render_lsystem

DENSE = {"F": "F[+F]F[-F]F"}


class TestExpand:
    def test_zero_iterations_returns_axiom(self) -> None:
        assert expand("F", DENSE, 0) == "F"

    def test_one_iteration(self) -> None:
        assert expand("F", DENSE, 1) == "F[+F]F[-F]F"

    def test_symbol_count_grows_by_fixed_factor(self) -> None:
        counts = [expand("F", DENSE, n).count("F") for n in range(5)]
        assert counts == [1, 5, 25, 125, 625]

    def test_unknown_symbols_pass_through(self) -> None:
        assert expand("AB", {"A": "AA"}, 2) == "AAAAB"

    def test_negative_iterations_rejected(self) -> None:
        with pytest.raises(PreconditionError):
            expand("F", DENSE, -1)


class TestBranchingRules:
    def test_low_seed_uses_dense_rule(self) -> None:
        assert branching_rules(0.2) == DENSE

    def test_half_is_still_dense(self) -> None:
        assert branching_rules(0.5) == DENSE

    def test_high_seed_forks(self) -> None:
        assert branching_rules(0.7) == {"F": "F[+F][-F]"}


class TestCheckBrackets:
    def test_balanced(self) -> None:
        check_brackets("F[+F[-F]]F")

    def test_unmatched_close(self) -> None:
        with pytest.raises(StackUnderflowError):
            check_brackets("F]")

    def test_unclosed_open(self) -> None:
        with pytest.raises(StackUnderflowError):
            check_brackets("[F")


class TestInterpret:
    def setup_method(self) -> None:
        self.surface = RecordingSurface(100, 100)
        self.rng = np.random.default_rng(0)

    def _run(self, instructions: str, length: float = 10.0, angle: float = math.pi / 2) -> int:
        self.surface.begin_path()
        drawn = interpret(instructions, self.surface, length, angle, self.rng)
        self.surface.stroke()
        return drawn

    def test_unmatched_close_fails_before_drawing(self) -> None:
        with pytest.raises(StackUnderflowError):
            self._run("F]")
        assert self.surface.strokes == []

    def test_single_segment_is_jittered(self) -> None:
        assert self._run("F") == 1
        (stroke,) = self.surface.strokes
        assert stroke.points[0] == pytest.approx((0.0, 0.0))
        assert stroke.points[1][0] == pytest.approx(0.0)
        assert 9.0 <= stroke.points[1][1] < 11.0

    def test_turn_changes_heading(self) -> None:
        self._run("F+F")
        first, second = self.surface.strokes
        assert second.points[0] == pytest.approx((0.0, 10.0))
        # rotating +90 degrees turns the +y heading towards -x
        assert second.points[1][1] == pytest.approx(10.0)
        assert -11.0 < second.points[1][0] <= -9.0

    def test_branch_restores_transform_and_length(self) -> None:
        self._run("[+F]F")
        branch, trunk = self.surface.strokes
        assert branch.points[0] == pytest.approx((0.0, 0.0))
        assert trunk.points[0] == pytest.approx((0.0, 0.0))
        assert 0.9 * 7.5 <= branch.length() < 1.1 * 7.5
        assert 9.0 <= trunk.length() < 11.0
        assert trunk.points[1][0] == pytest.approx(0.0)

    def test_advance_ignores_jitter(self) -> None:
        self._run("FF")
        first, second = self.surface.strokes
        assert second.points[0] == pytest.approx((0.0, 10.0))

    def test_other_characters_are_noops(self) -> None:
        assert self._run("XFY") == 1
        assert len(self.surface.strokes) == 1

    def test_same_seed_same_path(self) -> None:
        self._run("F[+F]F[-F]F")
        first = self.surface.polylines()
        other = RecordingSurface(100, 100)
        other.begin_path()
        interpret("F[+F]F[-F]F", other, 10.0, math.pi / 2, np.random.default_rng(0))
        other.stroke()
        assert other.polylines() == first


class TestRenderLSystem:
    def test_three_instances_of_every_segment(self) -> None:
        surface = RecordingSurface(200, 200)
        sentence = render_lsystem(surface, 2, math.pi / 6, 0.2, 0.0, np.random.default_rng(1))
        assert sentence.count("F") == 25
        assert len(surface.strokes) == 3 * 25

    def test_instances_use_first_three_palette_colors(self) -> None:
        surface = RecordingSurface(200, 200)
        render_lsystem(surface, 1, math.pi / 6, 0.9, 90.0, np.random.default_rng(1))
        colors = palette(90.0)
        segments = expand("F", branching_rules(0.9), 1).count("F")
        for i in range(3):
            instance = surface.strokes[i * segments:(i + 1) * segments]
            assert {stroke.color for stroke in instance} == {colors[i].to_rgb()}
            assert {stroke.width for stroke in instance} == {2.0}

    def test_first_segment_starts_above_center(self) -> None:
        surface = RecordingSurface(200, 200)
        render_lsystem(surface, 0, math.pi / 6, 0.2, 0.0, np.random.default_rng(1))
        first = surface.strokes[0]
        assert first.points[0] == pytest.approx((100.0, 50.0))
        # y is flipped, so the trunk grows upwards, away from the center
        assert first.points[1][1] < 50.0

    def test_clears_before_drawing(self) -> None:
        surface = RecordingSurface(50, 50)
        render_lsystem(surface, 1, math.pi / 6, 0.2, 0.0, np.random.default_rng(1))
        assert surface.calls[0][0] == "clear"

    def test_iteration_bound(self) -> None:
        surface = RecordingSurface(50, 50)
        with pytest.raises(PreconditionError):
            render_lsystem(surface, 8, math.pi / 6, 0.2, 0.0, np.random.default_rng(1))
        assert surface.calls == []

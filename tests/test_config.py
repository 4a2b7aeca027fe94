"""Tests für das Konfigurationssystem und den Testdaten-Generator."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.schema import (
    CohortConfig,
    GeneratorConfig,
    MatchingConfig,
    SwapConfig,
)
from config.defaults import (
    SAMPLE_STUDENTS,
    default_cohorts,
    default_matching,
    default_swap_config,
)
from config.manager import ConfigManager
from data.fake_data import FakeRosterGenerator
from models.student import Student


# ─── DEFAULT-KONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_matching_valid(self):
        """Default-Suchgrenzen: 5 Kandidaten, Ketten mit 2–5 Personen."""
        mc = default_matching()
        assert mc.candidate_cap == 5
        assert mc.min_rotation_length == 2
        assert mc.max_rotation_length == 5

    def test_default_cohorts_valid(self):
        cc = default_cohorts()
        assert cc.prefix_length == 2
        assert cc.restrict_to_cohort is True

    def test_default_swap_config_valid(self):
        """Vollständige Default-Config ist valide."""
        config = default_swap_config()
        assert config.institution_name == "Muster-Universität"
        assert config.log_level == "WARNING"
        assert config.data.roster_path == "output/roster.json"

    def test_sample_students_parse(self):
        """Alle Beispieldatensätze sind lesbar und gehören zu Batch 21."""
        students = [Student.from_record(r) for r in SAMPLE_STUDENTS]
        assert len(students) == 5
        assert {s.cohort for s in students} == {"21"}
        assert students[0].desired_sections == ["32"]


# ─── VALIDIERUNG ──────────────────────────────────────────────────────────────

class TestConfigValidation:
    def test_min_greater_than_max_raises(self):
        with pytest.raises(ValidationError):
            MatchingConfig(min_rotation_length=4, max_rotation_length=3)

    def test_candidate_cap_zero_raises(self):
        with pytest.raises(ValidationError):
            MatchingConfig(candidate_cap=0)

    def test_max_rotation_length_upper_bound(self):
        with pytest.raises(ValidationError):
            MatchingConfig(max_rotation_length=9)

    def test_empty_generator_cohorts_raises(self):
        with pytest.raises(ValidationError):
            GeneratorConfig(cohorts=[])

    def test_log_level_normalized(self):
        """Log-Level wird in Großbuchstaben umgewandelt."""
        assert SwapConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_raises(self):
        with pytest.raises(ValidationError):
            SwapConfig(log_level="LAUT")

    def test_prefix_length_zero_allowed(self):
        assert CohortConfig(prefix_length=0).prefix_length == 0


# ─── CONFIG-MANAGER ───────────────────────────────────────────────────────────

class TestConfigManager:
    def _make_manager(self, tmp_path: Path) -> ConfigManager:
        mgr = ConfigManager()
        mgr.CONFIG_DIR = tmp_path
        mgr.DEFAULT_CONFIG = tmp_path / "swap_config.yaml"
        return mgr

    def test_save_and_load_roundtrip(self, tmp_path: Path):
        """Config speichern und wieder laden ergibt identische Werte."""
        config = default_swap_config()
        config.matching.candidate_cap = 7
        mgr = self._make_manager(tmp_path)
        mgr.save(config)
        assert mgr.DEFAULT_CONFIG.exists()

        loaded = mgr.load(mgr.DEFAULT_CONFIG)
        assert loaded.matching.candidate_cap == 7
        assert loaded.institution_name == config.institution_name
        assert loaded.generator.cohorts == ["21", "22"]

    def test_saved_yaml_has_comments(self, tmp_path: Path):
        """Die YAML-Datei enthält Kopf- und Abschnittskommentare."""
        mgr = self._make_manager(tmp_path)
        mgr.save(default_swap_config())
        text = mgr.DEFAULT_CONFIG.read_text(encoding="utf-8")
        assert text.startswith("# ====")
        assert "Tausch-Suche" in text
        assert "Tiefenlimit" in text

    def test_first_run_check_no_file(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.DEFAULT_CONFIG = tmp_path / "nonexistent.yaml"
        assert mgr.first_run_check() is True

    def test_first_run_check_with_file(self, tmp_path: Path):
        mgr = self._make_manager(tmp_path)
        mgr.save(default_swap_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        mgr = ConfigManager()
        with pytest.raises(FileNotFoundError):
            mgr.load(tmp_path / "not_there.yaml")

    def test_load_invalid_raises_value_error(self, tmp_path: Path):
        """Ungültige Werte → ValueError mit Dateipfad."""
        path = tmp_path / "broken.yaml"
        path.write_text("matching:\n  candidate_cap: 0\n", encoding="utf-8")
        with pytest.raises(ValueError, match="ungültig"):
            ConfigManager().load(path)

    def test_load_or_default_without_file(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.DEFAULT_CONFIG = tmp_path / "nonexistent.yaml"
        config = mgr.load_or_default()
        assert config.matching.max_rotation_length == 5


# ─── TESTDATEN-GENERATOR ──────────────────────────────────────────────────────

class TestFakeRosterGenerator:
    def _make_config(self, **generator) -> SwapConfig:
        config = default_swap_config()
        config.generator = GeneratorConfig(**generator)
        return config

    def test_generate_counts(self):
        config = self._make_config(students_per_cohort=20, cohorts=["21", "22"])
        roster = FakeRosterGenerator(config, seed=1).generate()
        assert len(roster.students) == 40
        assert roster.institution_name == config.institution_name

    def test_ids_unique_and_cohort_prefixed(self):
        config = self._make_config(students_per_cohort=30, cohorts=["21", "23"])
        roster = FakeRosterGenerator(config, seed=2).generate()
        ids = [r["id"] for r in roster.students]
        assert len(ids) == len(set(ids))
        for r in roster.students:
            assert r["id"].startswith(r["cohort"])

    def test_all_rows_parse(self):
        """Jeder erzeugte Datensatz ist ein gültiger Student."""
        config = self._make_config(students_per_cohort=50)
        roster = FakeRosterGenerator(config, seed=3).generate()
        students = [Student.from_record(r) for r in roster.students]
        assert all(s.current_section.isdigit() for s in students)

    def test_fixed_direct_pair_and_rotation(self):
        """Die ersten fünf Personen jedes Batches bilden die festen Sonderfälle."""
        config = self._make_config(students_per_cohort=10, cohorts=["21"])
        rows = FakeRosterGenerator(config, seed=4).generate().students
        assert [(r["current_section"], r["desired_sections"]) for r in rows[:5]] == [
            ("1", ["2"]), ("2", ["1"]), ("3", ["4"]), ("4", ["5"]), ("5", ["3"]),
        ]

    def test_seed_reproducible(self):
        config = self._make_config(students_per_cohort=15)
        a = FakeRosterGenerator(config, seed=42).generate()
        b = FakeRosterGenerator(config, seed=42).generate()
        assert a.students == b.students

    def test_no_preference_percentage_full(self):
        """Bei 100 % ohne Wunsch haben nur die festen Fälle Wünsche."""
        config = self._make_config(
            students_per_cohort=20, cohorts=["21"], no_preference_percentage=1.0
        )
        rows = FakeRosterGenerator(config, seed=5).generate().students
        assert all(not r["desired_sections"] for r in rows[5:])

    def test_print_summary_runs(self):
        config = self._make_config(students_per_cohort=5, cohorts=["21"])
        gen = FakeRosterGenerator(config, seed=6)
        gen.print_summary(gen.generate())

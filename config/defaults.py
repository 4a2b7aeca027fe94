from config.schema import (
    CohortConfig,
    DataConfig,
    GeneratorConfig,
    MatchingConfig,
    SwapConfig,
)


# Beispieldatensatz einer Hochschule (Matrikelnummern mit Batch-Präfix "21").
# Wird von `python main.py generate --sample` und in Tests verwendet.
SAMPLE_STUDENTS: list[dict] = [
    {"id": "21051001", "name": "John Doe", "phone_number": "9876543210",
     "email": "john@example.edu", "current_section": "4", "desired_sections": '["32"]'},
    {"id": "21051002", "name": "Jane Smith", "phone_number": "9876543211",
     "email": "jane@example.edu", "current_section": "5", "desired_sections": '["20"]'},
    {"id": "21051003", "name": "Bob Johnson", "phone_number": "9876543212",
     "email": "bob@example.edu", "current_section": "6", "desired_sections": '["6"]'},
    {"id": "21051004", "name": "Alice Brown", "phone_number": "9876543213",
     "email": "alice@example.edu", "current_section": "20", "desired_sections": '["4"]'},
    {"id": "21051005", "name": "Charlie Wilson", "phone_number": "9876543214",
     "email": "charlie@example.edu", "current_section": "32", "desired_sections": '["5"]'},
]


def default_matching() -> MatchingConfig:
    """Standard-Suchgrenzen: Ketten mit 2–5 Personen, 5 Kandidaten pro Position."""
    return MatchingConfig(
        candidate_cap=5,
        min_rotation_length=2,
        max_rotation_length=5,
    )


def default_cohorts() -> CohortConfig:
    """Standard: Batch = erste zwei Ziffern der Matrikelnummer, Tausch nur im Batch."""
    return CohortConfig(prefix_length=2, restrict_to_cohort=True)


def default_swap_config() -> SwapConfig:
    """Vollständige Default-Konfiguration."""
    return SwapConfig(
        institution_name="Muster-Universität",
        log_level="WARNING",
        matching=default_matching(),
        cohorts=default_cohorts(),
        data=DataConfig(),
        generator=GeneratorConfig(),
    )

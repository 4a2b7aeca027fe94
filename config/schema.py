from pydantic import BaseModel, Field, field_validator, model_validator


# ─── MATCHING (Suchgrenzen des Tausch-Algorithmus) ───

class MatchingConfig(BaseModel):
    """Konstanten der Tausch-Suche.

    Die Rotationssuche ist bewusst NICHT vollständig: pro Kettenposition
    werden nur die ersten `candidate_cap` Kandidaten (aufsteigend nach
    Matrikelnummer) betrachtet. Dadurch bleibt die Laufzeit konstant klein,
    eine gültige Rotation über einen 6. Kandidaten wird aber nicht gefunden.
    """
    # Maximale Anzahl Kandidaten pro Kettenposition
    candidate_cap: int = Field(5, ge=1, le=50,
        description="Kandidaten pro Kettenposition (Breitenlimit)")
    # Kürzeste Rotationslänge (2 = Direkttausch als Kette)
    min_rotation_length: int = Field(2, ge=2,
        description="Kürzeste Rotationslänge (Personen)")
    # Längste Rotationslänge (Tiefenlimit)
    max_rotation_length: int = Field(5, ge=2, le=8,
        description="Längste Rotationslänge (Personen)")

    @model_validator(mode='after')
    def validate_lengths(self):
        if self.min_rotation_length > self.max_rotation_length:
            raise ValueError(
                f"min_rotation_length ({self.min_rotation_length}) > "
                f"max_rotation_length ({self.max_rotation_length})"
            )
        return self


# ─── JAHRGÄNGE (Batch) ───

class CohortConfig(BaseModel):
    """Ableitung des Jahrgangs ("Batch") aus der Matrikelnummer.

    Beispiel: Matrikelnummer "21051001" mit prefix_length=2 → Batch "21".
    Ein explizit gesetzter Batch am Datensatz hat immer Vorrang.
    """
    # Anzahl führender Zeichen der Matrikelnummer (0 = keine Ableitung)
    prefix_length: int = Field(2, ge=0, le=8,
        description="Führende Zeichen der Matrikelnummer für den Batch")
    # Tausch nur innerhalb desselben Batches
    restrict_to_cohort: bool = Field(True,
        description="Tauschpartner nur aus dem eigenen Batch")


# ─── DATEN ───

class DataConfig(BaseModel):
    """Pfade für den gespeicherten Datensatz und Exporte."""
    # JSON-Datei mit Studierenden, Anfragen und Historie
    roster_path: str = Field("output/roster.json",
        description="Pfad des JSON-Datensatzes")
    # Zielordner für Excel-Exporte
    export_dir: str = Field("output",
        description="Ordner für Exporte")


# ─── TESTDATEN ───

class GeneratorConfig(BaseModel):
    """Parameter für den Testdaten-Generator."""
    # Anzahl Studierende pro Batch
    students_per_cohort: int = Field(60, ge=1, le=5000,
        description="Studierende pro Batch")
    # Batches (Präfixe der Matrikelnummern)
    cohorts: list[str] = Field(default=["21", "22"],
        description="Batches (Präfix der Matrikelnummer)")
    # Anzahl Sektionen (Sektionen heißen "1".."n")
    num_sections: int = Field(12, ge=2, le=200,
        description="Anzahl Sektionen")
    # Anteil Studierender ohne Wunsch
    no_preference_percentage: float = Field(0.15, ge=0.0, le=1.0,
        description="Anteil ohne Wunschsektion")
    # Maximale Länge der Wunschliste
    max_desired: int = Field(3, ge=1, le=10,
        description="Maximale Anzahl Wunschsektionen")

    @field_validator("cohorts")
    @classmethod
    def _cohorts_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("Mindestens ein Batch erforderlich.")
        return v


# ─── GESAMT-CONFIG ───

class SwapConfig(BaseModel):
    """Gesamtkonfiguration des Sektionstauschs."""
    # Name der Hochschule (nur Anzeige)
    institution_name: str = Field("Muster-Universität",
        description="Name der Hochschule")
    # Log-Level für die CLI (DEBUG, INFO, WARNING, ERROR)
    log_level: str = Field("WARNING",
        description="Log-Level der CLI")
    # Suchgrenzen
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    # Batch-Ableitung
    cohorts: CohortConfig = Field(default_factory=CohortConfig)
    # Dateipfade
    data: DataConfig = Field(default_factory=DataConfig)
    # Testdaten
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unbekanntes Log-Level: {v}")
        return level

"""Experiment definitions as data.

Every experiment is one :class:`ExperimentConfig`: a reagent catalog, the
equipment that can be placed, and the ordered guided steps. The same engine
runs all of them; nothing experiment-specific lives in code paths elsewhere.

Built-in experiments:
    - ``ethanoic-buffer``: pH of ethanoic acid before and after adding sodium
      ethanoate (CH3COOH / CH3COO- buffer, pKa 4.76).
    - ``ammonium-buffer``: common-ion effect of NH4Cl on NH4OH
      (NH4+ / NH3 buffer, pKa 9.25).
    - ``hcl-ph``: pH of HCl at 0.1, 0.01 and 0.001 M.
    - ``ph-comparison``: strong (HCl) versus weak (ethanoic) acid at equal
      concentration, observed with universal indicator.
    - ``titration``: standardizing NaOH against 0.1 N oxalic acid with
      phenolphthalein; repeated trials give the titre and N1V1 = N2V2.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .catalog import Reagent, ReagentCatalog, ReagentRole
from .chemistry.equilibrium import BASIC_APPROXIMATION_PH
from .chemistry.titration import NAOH_EQUIVALENT_MASS, PHENOLPHTHALEIN_ENDPOINT_PH, TitrationSetup
from .guided import GuidedStep, StepCondition
from .history import ActionKind
from .vessel import DEFAULT_CAPACITY_ML

ETHANOIC_PKA = 4.76
AMMONIUM_PKA = 9.25
# 0.1 M aqueous ammonia; qualitative value for NH4OH with no NH4Cl present.
AMMONIA_BASIC_PH = 11.1
# Oxalic acid is diprotic; the standard is described by its H+ equivalents.
OXALIC_NORMALITY = 0.1


@dataclass(frozen=True)
class ExperimentConfig:
    """Immutable description of one experiment.

    Attributes:
        name: Registry key, e.g. ``"hcl-ph"``.
        title: Human-readable experiment title.
        catalog: Reagents the learner can add.
        steps: Ordered guided steps; empty for free exploration.
        equipment: Equipment id to display name for placement commands.
        capacity_ml: Vessel capacity in mL.
        basic_approximation_ph: pH reported when only the conjugate base of
            the pair is present.
        requires_indicator: Whether a measurement needs indicator paper or
            solution in contact with the vessel contents.
        titration: Analyte/titrant pairing for titration experiments; enables
            titres and the N1V1 = N2V2 result in the report.
    """

    name: str
    title: str
    catalog: ReagentCatalog
    steps: Tuple[GuidedStep, ...] = ()
    equipment: Mapping[str, str] = field(default_factory=dict)
    capacity_ml: float = DEFAULT_CAPACITY_ML
    basic_approximation_ph: float = BASIC_APPROXIMATION_PH
    requires_indicator: bool = True
    titration: Optional[TitrationSetup] = None


class ExperimentBuilder:
    """Fluent builder for :class:`ExperimentConfig`.

    Step ids are assigned in the order steps are added, starting at 1.
    """

    def __init__(self, name: str, title: str = ""):
        self._name = name
        self._title = title or name
        self._reagents: List[Reagent] = []
        self._equipment: Dict[str, str] = {}
        self._steps: List[GuidedStep] = []
        self._capacity_ml = DEFAULT_CAPACITY_ML
        self._basic_ph = BASIC_APPROXIMATION_PH
        self._requires_indicator = True
        self._titration: Optional[TitrationSetup] = None

    def capacity(self, capacity_ml: float) -> "ExperimentBuilder":
        self._capacity_ml = float(capacity_ml)
        return self

    def basic_approximation(self, ph: float) -> "ExperimentBuilder":
        self._basic_ph = float(ph)
        return self

    def requires_indicator(self, required: bool = True) -> "ExperimentBuilder":
        self._requires_indicator = bool(required)
        return self

    def titration(
        self,
        analyte_id: str,
        titrant_id: str,
        analyte_normality: float,
        endpoint_ph: float = PHENOLPHTHALEIN_ENDPOINT_PH,
        titrant_equivalent_mass: float = NAOH_EQUIVALENT_MASS,
    ) -> "ExperimentBuilder":
        self._titration = TitrationSetup(
            analyte_id, titrant_id, float(analyte_normality), endpoint_ph, titrant_equivalent_mass
        )
        return self

    def reagent(
        self,
        reagent_id: str,
        display_name: str,
        molarity: float,
        role: ReagentRole,
        volume_range_ml: Tuple[float, float],
        pka: Optional[float] = None,
    ) -> "ExperimentBuilder":
        low, high = volume_range_ml
        self._reagents.append(
            Reagent(reagent_id, display_name, float(molarity), role, float(low), float(high), pka)
        )
        return self

    def equipment(self, equipment_id: str, display_name: str) -> "ExperimentBuilder":
        self._equipment[equipment_id] = display_name
        return self

    def step(
        self,
        title: str,
        action: ActionKind,
        requires: Iterable[str] = (),
        description: str = "",
        condition: Optional[StepCondition] = None,
    ) -> "ExperimentBuilder":
        self._steps.append(
            GuidedStep(
                id=len(self._steps) + 1,
                title=title,
                description=description,
                action=action,
                required_ids=frozenset(requires),
                condition=condition,
            )
        )
        return self

    def build(self) -> ExperimentConfig:
        return ExperimentConfig(
            name=self._name,
            title=self._title,
            catalog=ReagentCatalog(self._reagents),
            steps=tuple(self._steps),
            equipment=dict(self._equipment),
            capacity_ml=self._capacity_ml,
            basic_approximation_ph=self._basic_ph,
            requires_indicator=self._requires_indicator,
            titration=self._titration,
        )


def _no_strong_acid(action, snapshot) -> bool:
    return snapshot.moles(ReagentRole.STRONG_ACID) == 0


def ethanoic_buffer() -> ExperimentConfig:
    return (
        ExperimentBuilder("ethanoic-buffer", "pH change of ethanoic acid on adding sodium ethanoate")
        .capacity(20.0)
        .reagent("ethanoic-acid", "0.1 M Ethanoic acid", 0.1, ReagentRole.WEAK_ACID, (10.0, 15.0), pka=ETHANOIC_PKA)
        .reagent("sodium-ethanoate", "0.1 M Sodium ethanoate", 0.1, ReagentRole.CONJUGATE_BASE, (5.0, 10.0), pka=ETHANOIC_PKA)
        .equipment("test-tube", "20 mL Test Tube")
        .step("Place Test Tube", ActionKind.PLACE_EQUIPMENT, ["test-tube"], "Place the test tube on the workbench.")
        .step("Add Ethanoic Acid", ActionKind.ADD_REAGENT, ["ethanoic-acid"], "Add 10.0-15.0 mL of 0.1 M ethanoic acid.")
        .step("Place pH Paper", ActionKind.PLACE_INDICATOR, description="Bring pH paper into contact with the solution.")
        .step("Measure Initial pH", ActionKind.MEASURE, description="Record the pH of the ethanoic acid alone.")
        .step("Add Sodium Ethanoate", ActionKind.ADD_REAGENT, ["sodium-ethanoate"], "Add 5.0-10.0 mL of 0.1 M sodium ethanoate.")
        .step("Measure Buffered pH", ActionKind.MEASURE, description="Record the pH of the CH3COOH/CH3COO- buffer.")
        .build()
    )


def ammonium_buffer() -> ExperimentConfig:
    return (
        ExperimentBuilder("ammonium-buffer", "pH change of ammonium hydroxide on adding ammonium chloride")
        .capacity(25.0)
        .basic_approximation(AMMONIA_BASIC_PH)
        .reagent("nh4oh-0-1m", "0.1 M NH4OH", 0.1, ReagentRole.CONJUGATE_BASE, (10.0, 15.0), pka=AMMONIUM_PKA)
        .reagent("nh4cl-0-1m", "0.1 M NH4Cl", 0.1, ReagentRole.WEAK_ACID, (5.0, 10.0), pka=AMMONIUM_PKA)
        .equipment("test-tube", "25 mL Test Tube")
        .step("Place Test Tube", ActionKind.PLACE_EQUIPMENT, ["test-tube"], "Place the test tube on the workbench.")
        .step("Add 0.1 M NH4OH", ActionKind.ADD_REAGENT, ["nh4oh-0-1m"], "Add ammonium hydroxide to the test tube.")
        .step("Add pH Paper", ActionKind.PLACE_INDICATOR, description="Place pH paper in contact with the solution.")
        .step("Measure NH4OH pH", ActionKind.MEASURE, description="Observe the pH of ammonium hydroxide alone.")
        .step("Add NH4Cl (Common Ion)", ActionKind.ADD_REAGENT, ["nh4cl-0-1m"], "Add ammonium chloride to shift the equilibrium.")
        .step("Measure and Observe pH", ActionKind.MEASURE, description="The pH should fall compared to pure NH4OH.")
        .build()
    )


def hcl_ph() -> ExperimentConfig:
    hcl_ids = ["hcl-0-1m", "hcl-0-01m", "hcl-0-001m"]
    return (
        ExperimentBuilder("hcl-ph", "pH of hydrochloric acid at different concentrations")
        .capacity(25.0)
        .reagent("hcl-0-1m", "0.1 M HCl", 0.1, ReagentRole.STRONG_ACID, (10.0, 15.0))
        .reagent("hcl-0-01m", "0.01 M HCl", 0.01, ReagentRole.STRONG_ACID, (10.0, 15.0))
        .reagent("hcl-0-001m", "0.001 M HCl", 0.001, ReagentRole.STRONG_ACID, (10.0, 15.0))
        .equipment("test-tube", "25 mL Test Tube")
        .step("Place Test Tube", ActionKind.PLACE_EQUIPMENT, ["test-tube"], "Place the test tube on the workbench.")
        .step("Add HCl", ActionKind.ADD_REAGENT, hcl_ids, "Add 10.0-15.0 mL of one HCl solution.")
        .step("Place pH Paper", ActionKind.PLACE_INDICATOR, description="Place universal indicator paper.")
        .step("Measure pH", ActionKind.MEASURE, description="Measure and record the pH.")
        .build()
    )


def ph_comparison() -> ExperimentConfig:
    return (
        ExperimentBuilder("ph-comparison", "pH of a strong acid and a weak acid of equal concentration")
        .capacity(20.0)
        .reagent("hcl-0-01m", "0.01 M HCl", 0.01, ReagentRole.STRONG_ACID, (5.0, 10.0))
        .reagent("acetic-0-01m", "0.01 M CH3COOH", 0.01, ReagentRole.WEAK_ACID, (5.0, 10.0), pka=ETHANOIC_PKA)
        .reagent("universal-indicator", "Universal indicator", 0.0, ReagentRole.INDICATOR, (0.2, 1.0))
        .equipment("test-tube", "20 mL Test Tube")
        .step("Place Test Tube", ActionKind.PLACE_EQUIPMENT, ["test-tube"], "Place the test tube on the workbench.")
        .step("Add 0.01 M HCl", ActionKind.ADD_REAGENT, ["hcl-0-01m"], "Add 5.0-10.0 mL of 0.01 M HCl.")
        .step("Add Universal Indicator", ActionKind.ADD_REAGENT, ["universal-indicator"], "Add 0.2-1.0 mL of indicator.")
        .step("Measure HCl pH", ActionKind.MEASURE, description="Record the color and pH of the strong acid.")
        .step(
            "Add 0.01 M CH3COOH",
            ActionKind.ADD_REAGENT,
            ["acetic-0-01m"],
            "Reset the HCl sample, then add 5.0-10.0 mL of 0.01 M ethanoic acid.",
            condition=_no_strong_acid,
        )
        .step("Measure CH3COOH pH", ActionKind.MEASURE, description="Compare with the HCl result.")
        .build()
    )


def titration() -> ExperimentConfig:
    return (
        ExperimentBuilder("titration", "Standardization of NaOH against 0.1 N oxalic acid")
        .capacity(250.0)
        .titration("oxalic-0-1n", "naoh", OXALIC_NORMALITY)
        .reagent("oxalic-0-1n", "0.1 N Oxalic acid", OXALIC_NORMALITY, ReagentRole.STRONG_ACID, (10.0, 10.0))
        .reagent("phenolphthalein", "Phenolphthalein", 0.0, ReagentRole.INDICATOR, (0.1, 0.5))
        .reagent("naoh", "NaOH solution", 0.08, ReagentRole.STRONG_BASE, (0.1, 25.0))
        .equipment("conical-flask", "250 mL Conical Flask")
        .equipment("burette", "50 mL Burette")
        .step("Place Conical Flask", ActionKind.PLACE_EQUIPMENT, ["conical-flask"], "Place the conical flask under the burette.")
        .step("Pipette Oxalic Acid", ActionKind.ADD_REAGENT, ["oxalic-0-1n"], "Pipette 10.0 mL of 0.1 N oxalic acid into the flask.")
        .step("Add Phenolphthalein", ActionKind.ADD_REAGENT, ["phenolphthalein"], "Add 2-3 drops (0.1-0.5 mL) of phenolphthalein.")
        .step("Titrate with NaOH", ActionKind.ADD_REAGENT, ["naoh"], "Run NaOH from the burette into the flask.")
        .step("Measure Endpoint", ActionKind.MEASURE, description="Measure; repeat additions until the pink endpoint persists.")
        .build()
    )


PRESETS: Dict[str, Callable[[], ExperimentConfig]] = {
    "ethanoic-buffer": ethanoic_buffer,
    "ammonium-buffer": ammonium_buffer,
    "hcl-ph": hcl_ph,
    "ph-comparison": ph_comparison,
    "titration": titration,
}


def load_experiment(name: str) -> ExperimentConfig:
    """Return a fresh built-in :class:`ExperimentConfig` by name.

    Raises:
        KeyError: If ``name`` is not a registered experiment.
    """
    try:
        factory = PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown experiment '{name}'. Available: {sorted(PRESETS)}") from None
    return factory()

"""Formula catalog.

Static descriptors for every formula the evaluator knows about, in display
order. Input declarations drive parsing: numeric fields are matched to the
keyword arguments of the formula body by name.
"""

from kidneycalc.schemas.base import AgeGroup, Chronicity, FormulaCategory, InputDomain, Sex
from kidneycalc.services import acid_base, formulas
from kidneycalc.services.models import ChoiceField, FormulaSpec, InputField, UnitOption

POSITIVE = InputDomain.POSITIVE
NON_NEGATIVE = InputDomain.NON_NEGATIVE

SEX = ChoiceField(
    name="sex",
    label="Sex",
    options=(
        ("male", Sex.MALE),
        ("female", Sex.FEMALE),
        ("m", Sex.MALE),
        ("f", Sex.FEMALE),
    ),
)

AGE_GROUP = ChoiceField(
    name="age_group",
    label="Age group",
    options=(
        ("adult", AgeGroup.ADULT),
        ("elderly", AgeGroup.ELDERLY),
    ),
    default="adult",
)

AGE = InputField("age", "Age", "years", POSITIVE)
CREATININE = InputField("creatinine", "Serum creatinine", "mg/dL", POSITIVE)
CYSTATIN_C = InputField("cystatin_c", "Serum cystatin C", "mg/L", POSITIVE)
WEIGHT = InputField("weight", "Weight", "kg", POSITIVE)

CKD_EPI_REFERENCE = (
    "Inker LA, Eneanya ND, Coresh J, et al. New creatinine- and cystatin C-based equations "
    "to estimate GFR without race. N Engl J Med. 2021;385:1737-1749."
)

FORMULA_CATALOG: tuple[FormulaSpec, ...] = (
    FormulaSpec(
        id="ckd_epi_creatinine",
        name="CKD-EPI 2021 (creatinine)",
        category=FormulaCategory.GFR,
        description="Calculate eGFR using the CKD-EPI 2021 race-free creatinine equation",
        equation="eGFR = 142 × (Scr/κ)^α × 0.9938^age [× 1.012 if female]",
        variables=(
            "Scr: Serum Creatinine (mg/dL)",
            "κ: 0.7 (female) or 0.9 (male)",
            "α: -0.241 if Scr ≤ κ, otherwise -1.200",
            "Age: years",
        ),
        references=(CKD_EPI_REFERENCE,),
        inputs=(CREATININE, AGE, SEX),
        tables=(formulas.CKD_STAGE,),
    ),
    FormulaSpec(
        id="ckd_epi_cystatin",
        name="CKD-EPI 2021 (cystatin C)",
        category=FormulaCategory.GFR,
        description="Calculate eGFR using the CKD-EPI 2021 cystatin C equation",
        equation="eGFR = 133 × (Scys/0.8)^α × 0.996^age [× 0.932 if female]",
        variables=(
            "Scys: Serum Cystatin C (mg/L)",
            "α: -0.499 if Scys ≤ 0.8, otherwise -1.328",
            "Age: years",
        ),
        references=(CKD_EPI_REFERENCE,),
        inputs=(CYSTATIN_C, AGE, SEX),
        tables=(formulas.CKD_STAGE,),
    ),
    FormulaSpec(
        id="ckd_epi_combined",
        name="CKD-EPI 2021 (creatinine-cystatin C)",
        category=FormulaCategory.GFR,
        description="Calculate eGFR from creatinine and cystatin C together",
        equation="eGFR = 135 × (Scr/κ)^α1 × (Scys/0.8)^α2 × 0.9961^age [× 0.963 if female]",
        variables=(
            "Scr: Serum Creatinine (mg/dL)",
            "Scys: Serum Cystatin C (mg/L)",
            "α1: -0.219 if Scr ≤ κ, otherwise -0.544",
            "α2: -0.323 if Scys ≤ 0.8, otherwise -0.778",
        ),
        references=(CKD_EPI_REFERENCE,),
        inputs=(CREATININE, CYSTATIN_C, AGE, SEX),
        tables=(formulas.CKD_STAGE,),
    ),
    FormulaSpec(
        id="glucose_correction",
        name="Glucose Correction for Sodium",
        category=FormulaCategory.ELECTROLYTES,
        description="Correct measured sodium for hyperglycemia-induced dilutional hyponatremia",
        equation="Corrected Na = Measured Na + factor × (Glucose - 100)",
        variables=(
            "Measured Na: Serum Sodium (mEq/L)",
            "Glucose: Serum Glucose (mg/dL)",
            "factor: 0.016 (Katz) or 0.024 (Hillier)",
        ),
        references=(
            "Katz MA. Hyperglycemia-induced hyponatremia: calculation of expected serum sodium "
            "decrease. N Engl J Med. 1973;289:843-844.",
            "Hillier TA, Abbott RD, Barrett EJ. Hyponatremia: evaluating the correction factor for "
            "hyperglycemia. Am J Med. 1999;106(4):399-403.",
        ),
        inputs=(
            InputField("sodium", "Measured sodium", "mEq/L", POSITIVE),
            InputField("glucose", "Glucose", "mg/dL", NON_NEGATIVE),
            ChoiceField(
                name="correction_factor",
                label="Correction factor",
                options=(("1.6", 0.016), ("2.4", 0.024)),
                default="1.6",
            ),
        ),
        tables=(formulas.SODIUM_STATUS, formulas.CORRECTED_SODIUM_SEVERITY),
    ),
    FormulaSpec(
        id="adrogue_madias",
        name="Adrogue-Madias Sodium Prediction",
        category=FormulaCategory.ELECTROLYTES,
        description="Predict sodium change with IV fluid administration",
        equation="ΔNa = (Na_infusate - Na_serum) × Volume(L) / (TBW + 1)",
        variables=(
            "Na_infusate: Sodium in fluid (mEq/L); 0.9% NS 154, 0.45% NS 77, LR 130, D5W 0, 3% saline 513",
            "Na_serum: Current serum sodium (mEq/L)",
            "TBW: Total body water (L)",
        ),
        references=("Adrogue HJ, Madias NE. Hyponatremia. N Engl J Med. 2000;342:1581-1589.",),
        inputs=(
            InputField("serum_sodium", "Serum sodium", "mEq/L", POSITIVE),
            InputField("infusate_sodium", "Infusate sodium", "mEq/L", NON_NEGATIVE),
            WEIGHT,
            InputField(
                "volume",
                "Infusate volume",
                "L",
                POSITIVE,
                unit_options=(UnitOption("L", 1.0), UnitOption("mL", 0.001)),
            ),
            SEX,
            AGE_GROUP,
        ),
        tables=(formulas.SODIUM_STATUS,),
    ),
    FormulaSpec(
        id="free_water_deficit",
        name="Free Water Deficit",
        category=FormulaCategory.ELECTROLYTES,
        description="Calculate free water deficit in hypernatremia",
        equation="FWD = TBW × (Na_current - Na_desired) / Na_desired",
        variables=(
            "Na_current: Current serum sodium (mEq/L)",
            "Na_desired: Goal sodium (mEq/L)",
            "TBW: Total body water (L)",
        ),
        references=("Adrogue HJ, Madias NE. Hypernatremia. N Engl J Med. 2000;342:1493-1499.",),
        inputs=(
            InputField("current_sodium", "Current sodium", "mEq/L", POSITIVE),
            InputField("desired_sodium", "Desired sodium", "mEq/L", POSITIVE, default=140),
            WEIGHT,
            SEX,
            AGE_GROUP,
        ),
        tables=(formulas.HYPERNATREMIA_SEVERITY,),
    ),
    FormulaSpec(
        id="corrected_calcium",
        name="Corrected Calcium",
        category=FormulaCategory.BONE_MINERAL,
        description="Correct serum calcium for hypoalbuminemia",
        equation="Corrected Ca = Total Ca + 0.8 × (4.0 - Albumin)",
        variables=(
            "Total Ca: Total Serum Calcium (mg/dL)",
            "Albumin: Serum Albumin (g/dL)",
        ),
        references=(
            "Payne RB, Little AJ, Williams RB, Milner JR. Interpretation of serum calcium in "
            "patients with abnormal serum proteins. BMJ. 1973;4:643-646.",
            "El-Hajj Fuleihan G, Clines GA, Hu MI, et al. Treatment of Hypercalcemia of Malignancy "
            "in Adults: An Endocrine Society Clinical Practice Guideline. J Clin Endocrinol Metab. "
            "2023;108(3):507-528.",
        ),
        inputs=(
            InputField("calcium", "Total calcium", "mg/dL", POSITIVE),
            InputField("albumin", "Albumin", "g/dL", POSITIVE),
        ),
        tables=(formulas.CALCIUM_STATUS,),
    ),
    FormulaSpec(
        id="anion_gap",
        name="Anion Gap & Delta-Delta",
        category=FormulaCategory.ACID_BASE,
        description="Calculate anion gap and delta-delta ratio for acid-base disorders",
        equation="AG = Na - (Cl + HCO3)\nΔΔ = (AG - 12) / (24 - HCO3)",
        variables=(
            "Na: Sodium (mEq/L)",
            "Cl: Chloride (mEq/L)",
            "HCO3: Bicarbonate (mEq/L)",
            "Albumin: optional, corrected AG = AG + 2.5 × (4.0 - Albumin)",
            "Normal AG: 12 mEq/L",
            "Normal HCO3: 24 mEq/L",
        ),
        references=(
            "Emmett M, Palmer B. The delta anion gap/delta HCO3 ratio in patients with a high "
            "anion gap metabolic acidosis. UpToDate. 2024.",
        ),
        inputs=(
            InputField("sodium", "Sodium", "mEq/L", NON_NEGATIVE),
            InputField("chloride", "Chloride", "mEq/L", NON_NEGATIVE),
            InputField("bicarbonate", "Bicarbonate", "mEq/L", NON_NEGATIVE),
            InputField("albumin", "Albumin", "g/dL", NON_NEGATIVE, required=False),
        ),
        tables=(formulas.ANION_GAP_STATUS, formulas.DELTA_DELTA_STATUS),
    ),
    FormulaSpec(
        id="acid_base",
        name="Acid-Base Interpretation",
        category=FormulaCategory.ACID_BASE,
        description=(
            "Interpret acid-base disorders by analyzing pH, HCO3, and PCO2 to identify "
            "primary and secondary disorders"
        ),
        equation=(
            "Primary disorder determined by pH and abnormal lab values; secondary disorders "
            "assessed via Winter's formula and compensation calculations"
        ),
        variables=(
            "pH: Arterial pH (7.35-7.45)",
            "HCO3: Serum Bicarbonate (22-26 mEq/L)",
            "PCO2: Arterial CO2 pressure (35-45 mmHg)",
            "Acute vs Chronic: For respiratory processes",
        ),
        references=(
            "Berend K, de Vries APJ, Gans ROB. Physiological Approach to Assessment of Acid-Base "
            "Disturbances. N Engl J Med. 2014;371(15):1434-1445.",
        ),
        inputs=(
            InputField("ph", "pH", "", POSITIVE),
            InputField("bicarbonate", "HCO3", "mEq/L", POSITIVE),
            InputField("pco2", "PCO2", "mmHg", POSITIVE),
            ChoiceField(
                name="chronicity",
                label="Acute or chronic",
                options=(("acute", Chronicity.ACUTE), ("chronic", Chronicity.CHRONIC)),
                default="acute",
            ),
        ),
        tables=(acid_base.PH_STATUS, acid_base.HCO3_STATUS, acid_base.PCO2_STATUS),
    ),
    FormulaSpec(
        id="bicarbonate_deficit",
        name="Bicarbonate Deficit",
        category=FormulaCategory.ACID_BASE,
        description="Calculate the amount of sodium bicarbonate needed to correct metabolic acidosis",
        equation="Bicarbonate Deficit (mEq) = (Desired HCO3 - Current HCO3) × 0.5 × Weight",
        variables=(
            "Current HCO3: Serum Bicarbonate (mEq/L)",
            "Desired HCO3: Goal Bicarbonate (mEq/L)",
            "Distribution Volume: 0.5 × weight (kg)",
        ),
        references=(
            "Di Iorio BR, Bellasi A, Raphael KL, et al. Treatment of metabolic acidosis with sodium "
            "bicarbonate delays progression of chronic kidney disease: the UBI Study. "
            "J Nephrol. 2019;32(6):989-1001.",
        ),
        inputs=(
            InputField("current_bicarbonate", "Current HCO3", "mEq/L", POSITIVE),
            InputField("desired_bicarbonate", "Desired HCO3", "mEq/L", POSITIVE, default=24),
            WEIGHT,
        ),
        tables=(formulas.BICARBONATE_STATUS,),
    ),
    FormulaSpec(
        id="efwc",
        name="Electrolyte-Free Water Clearance",
        category=FormulaCategory.ELECTROLYTES,
        description="Predict the effect of urine output on serum sodium",
        equation="EFWC = V × [1 - (U_Na + U_K) / S_Na]",
        variables=(
            "V: Urine volume (L/day)",
            "U_Na: Urine sodium (mEq/L)",
            "U_K: Urine potassium (mEq/L)",
            "S_Na: Serum sodium (mEq/L)",
        ),
        references=(
            "Rose BD. New approach to disturbances in the plasma sodium concentration. "
            "Am J Med. 1986;81(6):1033-1040.",
        ),
        inputs=(
            InputField("urine_sodium", "Urine sodium", "mEq/L", NON_NEGATIVE),
            InputField("urine_potassium", "Urine potassium", "mEq/L", NON_NEGATIVE),
            InputField("serum_sodium", "Serum sodium", "mEq/L", POSITIVE),
            InputField(
                "urine_volume",
                "Urine volume",
                "L/day",
                NON_NEGATIVE,
                unit_options=(UnitOption("L/day", 1.0), UnitOption("mL/hr", 24 / 1000)),
            ),
        ),
        tables=(formulas.EFWC_STATUS,),
    ),
    FormulaSpec(
        id="serum_osmolality",
        name="Serum Osmolality & Osmolal Gap",
        category=FormulaCategory.ELECTROLYTES,
        description="Calculate serum osmolality and the osmolal gap",
        equation="Calculated Osm = 2(Na) + Glucose/18 + BUN/2.8\nOsmolal Gap = Measured Osm - Calculated Osm",
        variables=(
            "Na: Serum sodium (mEq/L)",
            "Glucose: Serum glucose (mg/dL)",
            "BUN: Blood urea nitrogen (mg/dL)",
            "Measured Osm: optional (mOsm/kg)",
        ),
        references=(
            "Kraut JA, Kurtz I. Toxic alcohol ingestions: clinical features, diagnosis, and "
            "management. Clin J Am Soc Nephrol. 2008;3(1):208-225.",
        ),
        inputs=(
            InputField("sodium", "Sodium", "mEq/L", NON_NEGATIVE),
            InputField("glucose", "Glucose", "mg/dL", NON_NEGATIVE),
            InputField("bun", "BUN", "mg/dL", NON_NEGATIVE),
            InputField("measured_osmolality", "Measured osmolality", "mOsm/kg", NON_NEGATIVE, required=False),
        ),
        tables=(formulas.SERUM_OSMOLALITY_STATUS, formulas.OSMOLAL_GAP_STATUS),
    ),
    FormulaSpec(
        id="urine_anion_gap",
        name="Urine Anion Gap",
        category=FormulaCategory.ACID_BASE,
        description="Differentiate causes of normal anion gap metabolic acidosis",
        equation="UAG = (Na⁺ + K⁺) - Cl⁻",
        variables=(
            "Na⁺: Urine sodium (mEq/L)",
            "K⁺: Urine potassium (mEq/L)",
            "Cl⁻: Urine chloride (mEq/L)",
        ),
        references=(
            "Batlle DC, Hizon M, Cohen E, Gutterman C, Gupta R. The use of the urinary anion gap "
            "in the diagnosis of hyperchloremic metabolic acidosis. N Engl J Med. 1988;318(10):594-599.",
        ),
        inputs=(
            InputField("urine_sodium", "Urine sodium", "mEq/L", NON_NEGATIVE),
            InputField("urine_potassium", "Urine potassium", "mEq/L", NON_NEGATIVE),
            InputField("urine_chloride", "Urine chloride", "mEq/L", NON_NEGATIVE),
        ),
        tables=(formulas.URINE_ANION_GAP_STATUS,),
    ),
    FormulaSpec(
        id="urine_osmolal_gap",
        name="Urine Osmolal Gap",
        category=FormulaCategory.ACID_BASE,
        description="Estimate urine ammonium excretion from the urine osmolal gap",
        equation=(
            "Calc Urine Osm = 2(Na + K) + Urea N/2.8 + Glucose/18\n"
            "Urine Osmolal Gap = Measured - Calculated\n"
            "Estimated NH₄⁺ ≈ Urine Osmolal Gap / 2"
        ),
        variables=(
            "Na, K: Urine sodium and potassium (mEq/L)",
            "Urea N: Urine urea nitrogen (mg/dL)",
            "Glucose: Urine glucose (mg/dL)",
            "Measured: Measured urine osmolality (mOsm/kg)",
        ),
        references=(
            "Kim GH, Han JS, Kim YS, Joo KW, Kim S, Lee JS. Evaluation of urine acidification by "
            "urine anion gap and urine osmolal gap in chronic metabolic acidosis. "
            "Am J Kidney Dis. 1996;27(1):42-47.",
        ),
        inputs=(
            InputField("urine_sodium", "Urine sodium", "mEq/L", NON_NEGATIVE),
            InputField("urine_potassium", "Urine potassium", "mEq/L", NON_NEGATIVE),
            InputField("urine_urea_nitrogen", "Urine urea nitrogen", "mg/dL", NON_NEGATIVE),
            InputField("urine_glucose", "Urine glucose", "mg/dL", NON_NEGATIVE),
            InputField("measured_urine_osmolality", "Measured urine osmolality", "mOsm/kg", NON_NEGATIVE),
        ),
        tables=(formulas.URINE_OSMOLAL_GAP_STATUS, formulas.AMMONIUM_STATUS),
    ),
)

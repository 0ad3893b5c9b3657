"""Static keyword taxonomy of health concerns and conditions for chat analytics."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Pattern, Tuple


@dataclass(frozen=True)
class TaxonomyEntry:
    id: str
    label: str
    category: str
    description: str
    guidance: str
    patterns: Tuple[Pattern[str], ...]

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)


def _entry(
    entry_id: str,
    label: str,
    category: str,
    description: str,
    guidance: str,
    *patterns: str,
) -> TaxonomyEntry:
    return TaxonomyEntry(
        id=entry_id,
        label=label,
        category=category,
        description=description,
        guidance=guidance,
        patterns=tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns),
    )


# Symptom-level keyword groups. Matching is substring search, so a single
# message can land in several groups.
CONCERNS: Tuple[TaxonomyEntry, ...] = (
    _entry(
        "chest-discomfort",
        "Chest discomfort",
        "Cardiovascular",
        "Chest pain, pressure or tightness described by users.",
        "Chest pain with sweating, nausea or pain spreading to the arm or jaw needs emergency care right away.",
        r"chest (pain|pressure)",
        r"tight(ness)? (in|of) (my |the )?chest",
        r"\bchest (hurts|aches?)\b",
        r"\bpalpitations?\b",
    ),
    _entry(
        "breathing-difficulty",
        "Breathing difficulty",
        "Respiratory",
        "Shortness of breath, wheezing or trouble breathing.",
        "Sudden or severe breathlessness, blue lips or inability to speak in full sentences is an emergency.",
        r"shortness of breath",
        r"short of breath",
        r"\b(trouble|difficulty|hard) breathing\b",
        r"\bcan'?t breathe\b",
        r"\bwheez",
    ),
    _entry(
        "fever",
        "Fever",
        "General",
        "Raised temperature, chills or feeling feverish.",
        "Rest, fluids and fever reducers usually help; seek care for fever above 39.4 C or lasting over three days.",
        r"\bfever",
        r"\bhigh temperature\b",
        r"\bchills\b",
    ),
    _entry(
        "headache",
        "Headache",
        "Neurological",
        "Head pain of any intensity.",
        "Hydration and rest help most headaches; a sudden worst-ever headache or one with confusion needs urgent care.",
        r"\bhead ?aches?\b",
        r"\bhead (hurts|is pounding)\b",
    ),
    _entry(
        "cough-cold-symptoms",
        "Cough and throat irritation",
        "Respiratory",
        "Coughing, sore throat, congestion or runny nose.",
        "Warm fluids and rest ease most coughs; see a clinician if it lasts beyond three weeks or brings up blood.",
        r"\bcough",
        r"\bsore throat\b",
        r"\bcongest(ed|ion)\b",
        r"\brunny nose\b",
    ),
    _entry(
        "digestive-upset",
        "Digestive upset",
        "Digestive",
        "Nausea, vomiting, diarrhea or stomach pain.",
        "Sip fluids to avoid dehydration; blood in stool or vomit, or severe abdominal pain, needs prompt care.",
        r"\bnause",
        r"\bvomit",
        r"\bdiarrh(o)?ea\b",
        r"\bstomach ?(ache|pain|cramps?)\b",
        r"\babdominal pain\b",
    ),
    _entry(
        "fatigue",
        "Fatigue",
        "General",
        "Persistent tiredness or low energy.",
        "Review sleep, diet and stress; ongoing unexplained fatigue is worth a check-up and basic blood tests.",
        r"\bfatigue",
        r"\b(tired|exhausted)\b",
        r"\blow energy\b",
    ),
    _entry(
        "dizziness",
        "Dizziness",
        "Neurological",
        "Light-headedness, vertigo or fainting.",
        "Sit or lie down until it passes; fainting or dizziness with chest pain or weakness needs urgent care.",
        r"\bdizz(y|iness)\b",
        r"\blight-?headed",
        r"\bvertigo\b",
        r"\bfaint(ed|ing)?\b",
    ),
    _entry(
        "sleep-problems",
        "Sleep problems",
        "Mental health",
        "Insomnia or trouble falling or staying asleep.",
        "Keep a regular sleep schedule and limit screens before bed; talk to a clinician if it persists for weeks.",
        r"\binsomnia\b",
        r"\b(can'?t|cannot|trouble|difficulty) sleep",
        r"\bsleep(ing)? (problems?|issues?)\b",
    ),
    _entry(
        "anxiety-stress",
        "Anxiety and stress",
        "Mental health",
        "Feeling anxious, stressed or having panic attacks.",
        "Breathing exercises and talking to someone can help; reach out to a professional if it disrupts daily life.",
        r"\banxi(ous|ety)\b",
        r"\bstress(ed|ful)?\b",
        r"\bpanic attacks?\b",
    ),
    _entry(
        "skin-irritation",
        "Skin irritation",
        "Dermatological",
        "Rashes, itching or hives.",
        "Avoid likely irritants and use gentle moisturisers; a spreading rash with fever needs medical review.",
        r"\brash(es)?\b",
        r"\bitch(y|ing)\b",
        r"\bhives\b",
    ),
    _entry(
        "musculoskeletal-pain",
        "Muscle and joint pain",
        "Musculoskeletal",
        "Back, joint or muscle pain.",
        "Gentle movement and over-the-counter pain relief often help; see a clinician for swelling or numbness.",
        r"\bback pain\b",
        r"\bjoint pain\b",
        r"\b(knee|neck|shoulder) pain\b",
        r"\bmuscle (aches?|pain)\b",
    ),
)

# Illness-level keyword groups, counted independently of CONCERNS.
CONDITIONS: Tuple[TaxonomyEntry, ...] = (
    _entry(
        "common-cold",
        "Common cold",
        "Respiratory infection",
        "Viral upper respiratory infection.",
        "Rest, fluids and symptom relief; most colds clear within 7 to 10 days.",
        r"\bcommon cold\b",
        r"\b(a|the|head) cold\b",
        r"\bcaught a cold\b",
    ),
    _entry(
        "influenza",
        "Influenza",
        "Respiratory infection",
        "Seasonal flu.",
        "Antivirals work best within 48 hours of symptoms; yearly vaccination lowers risk.",
        r"\binfluenza\b",
        r"\bflu\b",
    ),
    _entry(
        "covid-19",
        "COVID-19",
        "Respiratory infection",
        "SARS-CoV-2 infection.",
        "Test if symptomatic, isolate while unwell and watch for breathing difficulty.",
        r"\bcovid",
        r"\bcoronavirus\b",
        r"\bsars-cov-2\b",
    ),
    _entry(
        "diabetes",
        "Diabetes",
        "Metabolic",
        "Type 1 or type 2 diabetes and blood sugar control.",
        "Monitor glucose regularly and keep HbA1c reviews with your care team.",
        r"\bdiabet",
        r"\bhigh blood sugar\b",
        r"\binsulin\b",
    ),
    _entry(
        "hypertension",
        "Hypertension",
        "Cardiovascular",
        "High blood pressure.",
        "Reduce salt, stay active and take prescribed medication consistently.",
        r"\bhypertension\b",
        r"\bhigh blood pressure\b",
    ),
    _entry(
        "asthma",
        "Asthma",
        "Respiratory",
        "Chronic airway inflammation.",
        "Keep a reliever inhaler at hand and follow your asthma action plan.",
        r"\basthma",
        r"\binhaler\b",
    ),
    _entry(
        "migraine",
        "Migraine",
        "Neurological",
        "Recurrent severe headaches, often with light sensitivity.",
        "Track triggers and discuss preventive treatment if attacks are frequent.",
        r"\bmigraines?\b",
    ),
    _entry(
        "allergies",
        "Allergies",
        "Immune",
        "Seasonal, food or environmental allergies.",
        "Antihistamines help mild symptoms; swelling of the face or throat is an emergency.",
        r"\ballerg",
        r"\bhay fever\b",
    ),
    _entry(
        "depression",
        "Depression",
        "Mental health",
        "Persistent low mood or loss of interest.",
        "Speak with a mental health professional; contact a crisis line if you have thoughts of self-harm.",
        r"\bdepress",
    ),
    _entry(
        "gastroenteritis",
        "Gastroenteritis",
        "Digestive",
        "Stomach bug or food poisoning.",
        "Oral rehydration is key; seek care for signs of dehydration or symptoms lasting over two days.",
        r"\bgastroenteritis\b",
        r"\bstomach bug\b",
        r"\bfood poisoning\b",
    ),
    _entry(
        "urinary-tract-infection",
        "Urinary tract infection",
        "Urological",
        "Bladder or urinary tract infection.",
        "See a clinician for testing; fever or back pain with urinary symptoms needs prompt review.",
        r"\buti\b",
        r"\burinary tract infection\b",
        r"\bburning (when|while) (i )?(pee|urinat)",
    ),
)


__all__ = ["CONCERNS", "CONDITIONS", "TaxonomyEntry"]

# app/services/llm/schemas.py
from app.schemas.models import GenerationConfig

# keys every suggested medicine must carry to be shown to a doctor
REQUIRED_MEDICATION_KEYS = ("name", "dosage")
MEDICATION_KEYS = ("name", "dosage", "frequency", "duration", "notes")

# literal output contracts embedded in the prompts
SUGGESTIONS_CONTRACT = """[
  {
    "name": "Medicine Name",
    "dosage": "Dosage",
    "frequency": "Frequency",
    "duration": "Duration",
    "notes": "Special instructions"
  }
]"""

DIAGNOSIS_CONTRACT = """{
  "diagnosis": "clear and concise medical diagnosis",
  "medicines": [
    {
      "name": "medicine name",
      "dosage": "e.g. 500mg",
      "frequency": "e.g. twice daily",
      "duration": "e.g. 5 days",
      "notes": "specific administration instructions, if any (avoid general health warnings)"
    }
  ]
}"""

PERSONALIZED_GENERATION = GenerationConfig(temperature=0.3, top_k=1, top_p=1.0, max_output_tokens=1024)
DIAGNOSIS_GENERATION = GenerationConfig(temperature=0.1, top_k=1, top_p=1.0, max_output_tokens=1024)

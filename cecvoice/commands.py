"""
Voice commands of the CEC report form.

Commands navigate between the form steps and stamp the procedure timeline
(bypass start and end, aortic clamping and unclamping) with the current time.
"""

import datetime
from typing import Callable, List, NamedTuple, Optional

from cecvoice.matcher import VoiceCommand
from cecvoice.notifications import Notifier

STEP_TITLES = [
    "Checklist Pré-CEC",
    "Patient & Équipe",
    "Bilan Pré-op",
    "Matériel",
    "Perfusion (Gaz/Hemodyn)",
    "Bilan Final",
]
CHECKLIST_STEP = 0
PATIENT_STEP = 1
PERFUSION_STEP = 4

EVENT_TYPES = ["Départ CEC", "Clampage", "Déclampage", "Fin CEC", "Autre"]


class TimelineEvent(NamedTuple):
    type: str
    name: str
    time: str  # HH:MM


class CecProcedure:
    """Form navigation and timeline state driven by voice commands."""

    def __init__(
        self,
        total_steps: int = len(STEP_TITLES),
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ):
        self.total_steps = total_steps
        self.notifier = notifier or Notifier()
        self.clock = clock
        self.active_step = 0
        self.timeline_events: List[TimelineEvent] = []

    @property
    def active_step_title(self) -> str:
        if self.active_step < len(STEP_TITLES):
            return STEP_TITLES[self.active_step]
        return f"Étape {self.active_step + 1}"

    def announce(self, message: str, variant: str = "default") -> None:
        self.notifier.notify("Commande Vocale", message, variant)

    def next_step(self) -> bool:
        """Move to the next step. Returns False on the last step."""
        if self.active_step >= self.total_steps - 1:
            return False
        self.active_step += 1
        return True

    def previous_step(self) -> bool:
        """Move to the previous step. Returns False on the first step."""
        if self.active_step <= 0:
            return False
        self.active_step -= 1
        return True

    def go_to_step(self, step: int) -> None:
        if not 0 <= step < self.total_steps:
            raise ValueError(f"Step {step} out of range (0-{self.total_steps - 1})")
        self.active_step = step

    def add_timeline_event(self, event_type: str, name: Optional[str] = None) -> TimelineEvent:
        """
        Record a timeline event at the current time.

        Args:
            event_type: One of EVENT_TYPES
            name: Description, defaults to the event type

        Returns:
            The recorded event
        """
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown timeline event type: {event_type}")

        now = self.clock().strftime("%H:%M")
        event = TimelineEvent(event_type, name or event_type, now)
        self.timeline_events.append(event)
        self.announce(f"Top {event_type} enregistré à {now}", "success")
        return event


def build_voice_commands(procedure: CecProcedure) -> List[VoiceCommand]:
    """
    Build the report's voice commands, bound to a procedure.

    Navigation commands come first, so a transcript containing both a step
    name and an event keyword navigates.
    """

    def next_step():
        if procedure.next_step():
            procedure.announce("Navigation vers l'étape suivante")

    def previous_step():
        if procedure.previous_step():
            procedure.announce("Navigation vers l'étape précédente")

    def go_to(step, label):
        def action():
            procedure.go_to_step(step)
            procedure.announce(f"Navigation vers {label}")
        return action

    def record(event_type):
        return lambda: procedure.add_timeline_event(event_type)

    return [
        VoiceCommand("Suivant", ("suivant", "next", "après"), next_step),
        VoiceCommand("Précédent", ("précédent", "retour", "back", "before"), previous_step),
        VoiceCommand(
            "Aller à Checklist",
            ("checklist", "check-list", "vérification"),
            go_to(CHECKLIST_STEP, "Checklist"),
        ),
        VoiceCommand(
            "Aller à Patient",
            ("patient", "identité", "équipe"),
            go_to(PATIENT_STEP, "Patient & Équipe"),
        ),
        VoiceCommand(
            "Aller à Perfusion",
            ("perfusion", "gaz", "hémo", "déroulement"),
            go_to(PERFUSION_STEP, "Perfusion"),
        ),
        VoiceCommand(
            "Départ CEC",
            ("départ c'est c", "départ cec", "départ", "démarrer cec", "start cec", "début cec"),
            record("Départ CEC"),
        ),
        VoiceCommand(
            "Fin CEC",
            ("fin cec", "arrêtez cec", "stop cec", "fin c'est c"),
            record("Fin CEC"),
        ),
        VoiceCommand(
            "Clampage",
            ("clampage", "cliquez clampage", "clamper", "aorte clampée"),
            record("Clampage"),
        ),
        VoiceCommand(
            "Déclampage",
            ("déclampage", "déclamper", "ouvrir aorte"),
            record("Déclampage"),
        ),
    ]

"""
Setup Wizard Example

A multi-step wizard. Press Esc on any step after the first to go back;
the previous answer becomes the default.
"""

from ralph_tui import (
    ChoicePrompt,
    ConfirmPrompt,
    NumberPrompt,
    PasswordPrompt,
    PathPrompt,
    Session,
    TextPrompt,
    is_cancelled,
)


def main():
    session = Session()

    answers = session.run_wizard([
        TextPrompt(name="project", message="Project name", required=True),
        PathPrompt(name="specs", message="Specs directory", default="./specs"),
        ChoicePrompt(name="provider", message="Provider", choices=[("C", "Cloud"), ("l", "Local")]),
        PasswordPrompt(name="api_key", message="API key", min_length=8, required=False),
        NumberPrompt(name="max_iterations", message="Max iterations", default=10, min=1, max=100),
        ConfirmPrompt(name="start", message="Start the first iteration now?"),
    ])
    if is_cancelled(answers):
        return

    answers["api_key"] = "*" * len(answers["api_key"] or "")
    session.banner([f"{key}: {value}" for key, value in answers.items()])

    if session.danger_confirm("This will reset the session directory") is True:
        session.success("Session reset")


if __name__ == "__main__":
    main()

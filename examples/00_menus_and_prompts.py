"""
Menus and Prompts Example

Walks through the interactive components: a single-select menu with
hotkeys, a multi-select with limits, and the validated prompts.
Run it in a real terminal; piped input falls back to line mode.
"""

from ralph_tui import MenuItem, Session, TextPrompt, is_cancelled
from ralph_tui.config import TuiSettings, configure_logging


def main():
    settings = TuiSettings.from_env()
    configure_logging(settings)
    session = Session(settings=settings)

    print("=" * 60)
    print("Menus and Prompts")
    print("=" * 60)

    colour = session.show_menu(
        [
            MenuItem(text="Red", hotkey="r"),
            MenuItem(text="Green", hotkey="g"),
            MenuItem(text="Blue", hotkey="b", description="the calm one"),
            MenuItem.separator(),
            MenuItem(text="Ultraviolet", disabled=True, disabled_reason="not visible"),
        ],
        title="Pick a colour",
    )
    if is_cancelled(colour):
        return

    toppings = session.show_multiselect(
        ["Cheese", "Mushrooms", "Olives", "Peppers", "Pineapple"],
        title="Toppings (up to 3)",
        min_select=1,
        max_select=3,
    )
    if is_cancelled(toppings):
        return

    name = session.prompt_text(TextPrompt(message="Your name", required=True, max_length=40))
    if is_cancelled(name):
        return

    age = session.prompt_number("Age", min=1, max=150)
    workdir = session.prompt_path("Working directory", default=".", must_exist=True, path_kind="directory")
    mode = session.prompt_choice("Mode", choices=[("A", "Auto"), ("m", "Manual")])
    fruit = session.prompt_search("Favourite fruit:", candidates=[
        "apple", "apricot", "banana", "cherry", "grape", "lemon", "mango", "orange", "pear",
    ])

    session.banner([
        f"Colour:   {colour.value}",
        f"Toppings: {', '.join(toppings.value)}",
        f"Name:     {name}",
        f"Age:      {age}",
        f"Workdir:  {workdir}",
        f"Mode:     {mode}",
        f"Fruit:    {fruit}",
    ])


if __name__ == "__main__":
    main()

from prompt_toolkit import prompt
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.styles import Style
from prompt_toolkit.formatted_text import FormattedText
from loguru import logger

CHOICES = [
    ('accept', 'Accept', 'c'),
    ('regenerate', 'Regenerate', 'r'),
    ('quit', 'Quit', 'q'),
]

FEEDBACK = {
    'accept': 'Accepting...',
    'regenerate': 'Regenerating...',
    'quit': 'Aborting...',
}


def format_result(result):
    return (f"Commit: {result.commit}\n"
            f"Branch: {result.branch}\n"
            f"Title:  {result.title}\n\n"
            f"{result.description}\n")


def display_result(result):
    logger.success("Generated commit information:\n" + format_result(result))


def ask_action():
    """Shows the action toolbar and returns the chosen action key."""
    style = Style.from_dict({
        'bottom-toolbar': 'bg:#444444 #ffffff',
        'selected': 'bg:#ffffff #000000 bold',
        'unselected': 'bg:#444444 #ffffff',
    })

    kb = KeyBindings()
    selected_index = [0]

    @kb.add('left')
    def _(event):
        selected_index[0] = (selected_index[0] - 1) % len(CHOICES)
        event.app.invalidate()

    @kb.add('right')
    def _(event):
        selected_index[0] = (selected_index[0] + 1) % len(CHOICES)
        event.app.invalidate()

    def get_toolbar():
        return FormattedText([
            ('class:selected' if i == selected_index[0] else 'class:unselected', f" ({shortcut}) {name} ")
            for i, (_, name, shortcut) in enumerate(CHOICES)
        ])

    for key, _, shortcut in CHOICES:
        @kb.add(shortcut)
        def _(event, key=key):
            event.app.exit(result=key)

    @kb.add('enter')
    def _(event):
        event.app.exit(result=CHOICES[selected_index[0]][0])

    # Prevent user input
    @kb.add('<any>')
    def _(event):
        pass

    return prompt('', key_bindings=kb, bottom_toolbar=get_toolbar, style=style)


def handle_user_input(generate_func, ask=ask_action):
    """
    Generates a result and lets the user accept it, generate a new one or
    quit. Returns the accepted result, or None when the user quits.
    """
    while True:
        result = generate_func()
        display_result(result)

        action = ask()
        print(FEEDBACK.get(action, ''))
        if action == 'accept':
            return result
        if action == 'quit':
            logger.error("Aborted by user.")
            return None

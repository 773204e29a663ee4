from datetime import datetime


def format_due_date(dt: datetime) -> str:
    # M/D/YYYY
    return f"{dt.month}/{dt.day}/{dt.year}"


SMS_TEMPLATES = {
    "BOOK_BORROWED": lambda title, due_date: (
        f'Library Alert: You have borrowed "{title}". Please return by {due_date}. '
        f"Thank you for using our library!"
    ),
    "BOOK_RETURNED": lambda title: (
        f'Library Confirmation: You have successfully returned "{title}". '
        f"Thank you for using our library!"
    ),
    "DUE_REMINDER": lambda title, days_left: (
        f'Library Reminder: "{title}" is due in {days_left} day(s). '
        f"Please return on time to avoid late fees."
    ),
    "OVERDUE_NOTICE": lambda title, days_overdue: (
        f'OVERDUE ALERT: "{title}" was due {days_overdue} day(s) ago. '
        f"Please return immediately to avoid additional fees. Contact library for assistance."
    ),
    "FINAL_NOTICE": lambda title, days_overdue: (
        f'FINAL NOTICE: "{title}" is {days_overdue} days overdue. Immediate return required. '
        f"Late fees apply. Contact the library."
    ),
    "BOOK_AVAILABLE": lambda title: (
        f'Good news! "{title}" is now available for borrowing. Visit the library to collect it.'
    ),
    "ACCOUNT_CREATED": lambda name: (
        f"Welcome {name}! Your library account has been created successfully. Happy reading!"
    ),
    "MANUAL_OVERDUE": lambda title: (
        f'Library Notice: Please return "{title}" immediately. This book is overdue. '
        f"Contact the library for assistance."
    ),
}


def render(event: str, *args) -> str:
    try:
        template = SMS_TEMPLATES[event]
    except KeyError:
        raise ValueError(f"Unknown SMS template: {event}")
    return template(*args)

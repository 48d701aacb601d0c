"""Route modules for the quizify web app."""

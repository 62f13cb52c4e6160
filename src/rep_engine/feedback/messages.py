"""
messages.py - User-facing feedback text.

All strings are pt-BR, the language of the coaching product.
"""


# --- Feedback Templates ---
class FeedbackGenerator:
    @staticmethod
    def joints_not_visible():
        return "Articulações não visíveis. Posicione-se de frente para a câmera."
    @staticmethod
    def invalid_position():
        return "Posição inválida para este exercício."
    @staticmethod
    def not_standing():
        return "Fique de pé para iniciar o exercício."
    @staticmethod
    def not_horizontal():
        return "Assuma a posição de prancha para iniciar."
    @staticmethod
    def low_visibility():
        return "Corpo não detectado por completo. Afaste-se da câmera."
    @staticmethod
    def moving_to_target():
        return "Desça..."
    @staticmethod
    def at_target():
        return "Excelente! Agora suba."
    @staticmethod
    def returning():
        return "Subindo..."
    @staticmethod
    def rep_counted():
        return "Boa! Continue."
    @staticmethod
    def movement_too_short():
        return "Movimento curto demais! Aumente a amplitude."
    @staticmethod
    def rep_not_counted():
        return "Repetição não contada! Corrija a postura."

    # --- Session summary ---
    @staticmethod
    def amplitude_warning(count):
        return f"Aumente a amplitude: {count} repetição(ões) não contada(s) por movimento curto."
    @staticmethod
    def no_attempts():
        return "Nenhuma tentativa detectada. Verifique o posicionamento da câmera."
    @staticmethod
    def no_valid_reps():
        return "Nenhuma repetição válida. Revise a técnica do exercício."
    @staticmethod
    def clean_execution():
        return "Execução perfeita!"


DEFAULT_PHASE_MESSAGES = {
    "moving_to_target": FeedbackGenerator.moving_to_target(),
    "at_target": FeedbackGenerator.at_target(),
    "returning": FeedbackGenerator.returning(),
    "rep_counted": FeedbackGenerator.rep_counted(),
}

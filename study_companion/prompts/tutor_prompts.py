WELCOME_MESSAGE = "무엇이든 물어보세요! 국영수 학습을 도와드릴게요."

DEFAULT_CAPTURE_QUESTION = "캡처한 문제에 대해 질문합니다."

CAPTURED_QUIZ_TEMPLATE = "[캡처된 퀴즈 내용: {image_text}] {message}"

NOTE_EXPLANATION_TEMPLATE = (
    "이 수학/국영수 문제에 대해 고등학생 수준에 맞춰 친절하고 단계적인 해설을 제공해 주세요. "
    "문제: \"{text}\". 정답은 \"{answer}\"입니다."
)

import streamlit as st
import requests
from datetime import date
import uuid
from study_companion.config import Config
from study_companion.core.formatting import clean_note_text, format_quiz_text
from study_companion.prompts.tutor_prompts import WELCOME_MESSAGE

# Page configuration
st.set_page_config(
    page_title="Study Companion",
    page_icon="📚",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Configuration
API_BASE_URL = "http://localhost:8000/api"

SUBJECT_LABELS = {"all": "전체 과목", "math": "수학", "english": "영어"}
LIVE_STATUS_LABELS = {"waiting": "참가자 대기 중", "in_progress": "퀴즈 진행 중!", "finished": "퀴즈 종료"}

# Initialize session state
defaults = {
    "user_id": f"user_{uuid.uuid4().hex[:8]}",
    "quiz_subject": "all",
    "quiz_items": [],
    "quiz_index": 0,
    "correct_count": 0,
    "incorrect_count": 0,
    "last_feedback": None,
    "explanations": {},
    "studying_subject": None,
    "live_session": None,
    "tutor_messages": [],
}
for key, value in defaults.items():
    if key not in st.session_state:
        st.session_state[key] = value

def main():
    st.title("📚 Study Companion")

    with st.sidebar:
        st.header("메뉴")
        tab = st.radio(
            "이동",
            ["퀴즈", "오답 노트", "스터디 그룹", "실시간 퀴즈", "AI 튜터", "급식 알리미", "문의"],
            index=0
        )
        st.caption(f"사용자 ID: {st.session_state.user_id}")

    pages = {
        "퀴즈": show_quiz_tab,
        "오답 노트": show_error_note_tab,
        "스터디 그룹": show_study_tab,
        "실시간 퀴즈": show_live_quiz_tab,
        "AI 튜터": show_tutor_tab,
        "급식 알리미": show_meal_tab,
        "문의": show_inquiry_tab,
    }
    pages[tab]()

def api_get(path, **params):
    response = requests.get(f"{API_BASE_URL}{path}", params=params or None)
    return response

def api_post(path, data=None):
    return requests.post(f"{API_BASE_URL}{path}", json=data or {})

def error_detail(response):
    try:
        return response.json().get("detail", "Unknown error")
    except ValueError:
        return f"HTTP {response.status_code}"

# ---------------------------------------------------------------- quiz

def load_quiz(subject):
    """Fetch a fresh batch and reset the score"""
    try:
        response = api_get(f"/quiz/{subject}")
        if response.status_code == 200:
            st.session_state.quiz_items = response.json()["items"]
            st.session_state.quiz_index = 0
            st.session_state.correct_count = 0
            st.session_state.incorrect_count = 0
            st.session_state.last_feedback = None
        else:
            st.error(f"Failed to load quiz: {error_detail(response)}")
    except Exception as e:
        st.error(f"Error connecting to API: {str(e)}")

def show_quiz_tab():
    st.header("📝 퀴즈")

    subject = st.selectbox(
        "과목 선택",
        options=list(SUBJECT_LABELS.keys()),
        format_func=lambda s: SUBJECT_LABELS[s],
        index=list(SUBJECT_LABELS.keys()).index(st.session_state.quiz_subject)
    )
    if subject != st.session_state.quiz_subject or not st.session_state.quiz_items:
        st.session_state.quiz_subject = subject
        load_quiz(subject)

    items = st.session_state.quiz_items
    index = st.session_state.quiz_index

    feedback = st.session_state.last_feedback
    if feedback:
        if feedback["is_correct"]:
            st.success("정답입니다!")
        else:
            st.error(f"오답입니다. 정답: {feedback['correct_answer']} (오답 노트에 저장됨)")

    if index >= len(items):
        st.subheader("🎉 퀴즈 완료!")
        st.write(f"총 {len(items)}문항 중 정답 {st.session_state.correct_count}개, "
                 f"오답 {st.session_state.incorrect_count}개입니다.")
        if st.button("새 퀴즈 시작", type="primary"):
            load_quiz(st.session_state.quiz_subject)
            st.rerun()
        return

    item = items[index]
    st.caption(f"Q. {index + 1} / {len(items)} · {item['unit']}")
    st.markdown(f"**{format_quiz_text(item['text'])}**")

    for option in item["options"]:
        if st.button(format_quiz_text(option), key=f"{item['id']}-{option}", use_container_width=True):
            submit_quiz_answer(item, option)
            st.rerun()

def submit_quiz_answer(item, selected):
    try:
        response = api_post("/quiz/answer", {
            "user_id": st.session_state.user_id,
            "item": item,
            "selected": selected
        })
        if response.status_code != 200:
            st.error(f"Error: {error_detail(response)}")
            return
        result = response.json()
        if result["is_correct"]:
            st.session_state.correct_count += 1
        else:
            st.session_state.incorrect_count += 1
        st.session_state.last_feedback = result
        st.session_state.quiz_index += 1
    except Exception as e:
        st.error(f"Connection error: {str(e)}")

# ---------------------------------------------------------------- error notes

def show_error_note_tab():
    st.header("📒 오답 노트")
    try:
        response = api_get(f"/notes/{st.session_state.user_id}")
        notes = response.json()["notes"] if response.status_code == 200 else []
    except Exception as e:
        st.error(f"Error connecting to API: {str(e)}")
        return

    if not notes:
        st.info("아직 틀린 문제가 없습니다. 퀴즈를 풀어보세요!")
        return

    for note in notes:
        with st.container(border=True):
            st.caption(f"{SUBJECT_LABELS.get(note['subject'], note['subject'])} - {note['unit']} · "
                       f"틀린 횟수 {note['incorrect_count']}")
            st.write(clean_note_text(note["text"]))
            col1, col2 = st.columns(2)
            with col1:
                if st.button("✨ 해설 요청", key=f"explain-{note['note_id']}"):
                    with st.spinner("해설 생성 중..."):
                        result = api_post(f"/notes/{st.session_state.user_id}/{note['note_id']}/explanation")
                    if result.status_code == 200:
                        st.session_state.explanations[note["note_id"]] = result.json()["explanation"]
                    else:
                        st.error(error_detail(result))
            with col2:
                if st.button("🗑 삭제", key=f"delete-{note['note_id']}"):
                    requests.delete(f"{API_BASE_URL}/notes/{st.session_state.user_id}/{note['note_id']}")
                    st.rerun()

            explanation = st.session_state.explanations.get(note["note_id"])
            if explanation:
                st.success(f"**AI 튜터 해설:**\n\n{explanation}")

# ---------------------------------------------------------------- study timer

def show_study_tab():
    st.header("👥 스터디 그룹")
    user_id = st.session_state.user_id

    try:
        today = api_get(f"/study/{user_id}/today").json()
    except Exception as e:
        st.error(f"Error connecting to API: {str(e)}")
        return

    st.subheader(f"개인 학습 타이머 (오늘 누적: {today['total_study_minutes']}분)")

    if st.session_state.studying_subject is None:
        subject = st.selectbox("학습 과목 선택", [Config.NO_SUBJECT] + Config.STUDY_SUBJECTS)
        if st.button("▶ 공부 시작", type="primary", disabled=subject == Config.NO_SUBJECT):
            response = api_post("/study/start", {"user_id": user_id, "subject": subject})
            if response.status_code == 200:
                st.session_state.studying_subject = subject
                st.rerun()
            else:
                st.error(error_detail(response))
    else:
        st.info(f"[{st.session_state.studying_subject}] 공부 중...")
        if st.button(f"■ 공부 종료 ({st.session_state.studying_subject})"):
            response = api_post("/study/stop", {"user_id": user_id})
            st.session_state.studying_subject = None
            if response.status_code == 200:
                result = response.json()
                if result["recorded"]:
                    st.success(f"공부 종료! [{result['subject']}] {result['formatted']} "
                               f"({result['minutes']}분)이 오늘 기록에 추가되었습니다.")
                else:
                    st.warning("공부 시간이 너무 짧아 기록되지 않았습니다.")
            else:
                st.error(error_detail(response))

    st.subheader("과목별 오늘 학습 시간")
    subject_minutes = {s: m for s, m in today["subject_minutes"].items() if m > 0}
    if subject_minutes:
        for subject, minutes in subject_minutes.items():
            st.write(f"**{subject}**: {minutes}분")
    else:
        st.caption("기록된 과목별 학습 시간이 없습니다.")

    groups = api_get(f"/study/{user_id}/groups").json().get("groups", [])
    st.subheader(f"나의 그룹 목록 ({len(groups)})")
    for group in groups:
        st.write(f"**{group['group_name']}** · {len(group['members'])} 명")

    with st.expander("새 그룹 만들기"):
        name = st.text_input("그룹 이름")
        if st.button("그룹 생성") and name.strip():
            api_post("/study/groups", {"group_name": name, "members": [user_id]})
            st.rerun()

# ---------------------------------------------------------------- live quiz

def show_live_quiz_tab():
    st.header("⚡ 실시간 퀴즈")
    user_id = st.session_state.user_id
    session = st.session_state.live_session

    if session is None:
        col1, col2 = st.columns(2)
        with col1:
            st.subheader("방 만들기 (호스트)")
            if st.button("새 퀴즈 방 생성", type="primary"):
                response = api_post("/live/host", {"user_id": user_id})
                if response.status_code == 200:
                    st.session_state.live_session = response.json()
                    st.rerun()
                else:
                    st.error(error_detail(response))
        with col2:
            st.subheader("참여 코드 입력")
            code = st.text_input("6자리 참여 코드", max_chars=6).upper()
            if st.button("퀴즈 참가", disabled=len(code) != 6):
                response = api_post("/live/join", {"join_code": code, "user_id": user_id})
                if response.status_code == 200:
                    st.session_state.live_session = response.json()
                    st.rerun()
                else:
                    st.error(error_detail(response))
        return

    refreshed = api_get(f"/live/{session['session_id']}")
    if refreshed.status_code == 200:
        session = st.session_state.live_session = refreshed.json()

    st.subheader(f"참여 코드: {session['join_code']}")
    st.write(f"상태: {LIVE_STATUS_LABELS[session['status']]}")

    if user_id == session["host_id"]:
        if session["status"] == "waiting" and st.button("퀴즈 시작 (호스트 전용)"):
            api_post(f"/live/{session['session_id']}/start", {"user_id": user_id})
            st.rerun()
        if session["status"] == "in_progress" and st.button("퀴즈 종료"):
            api_post(f"/live/{session['session_id']}/finish", {"user_id": user_id})
            st.rerun()

    if session["status"] == "in_progress":
        answered = {a["item_id"] for a in session.get("answers", []) if a["user_id"] == user_id}
        remaining = [q for q in session["quiz_set"] if q["id"] not in answered]
        if remaining:
            question = remaining[0]
            st.markdown(f"**{format_quiz_text(question['text'])}**")
            for option in question["options"]:
                if st.button(option, key=f"live-{question['id']}-{option}"):
                    api_post(f"/live/{session['session_id']}/answer",
                             {"user_id": user_id, "item_id": question["id"], "selected": option})
                    st.rerun()
        else:
            st.info("모든 문제를 풀었습니다. 다른 참가자를 기다려 주세요.")

    st.subheader("🏆 실시간 랭킹")
    for rank, entry in enumerate(session["ranking"], start=1):
        st.write(f"{rank}위 · {entry['nickname']} · {entry['score']}점")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("🔄 새로고침"):
            st.rerun()
    with col2:
        if st.button("나가기"):
            st.session_state.live_session = None
            st.rerun()

# ---------------------------------------------------------------- tutor

def show_tutor_tab():
    st.header("🤖 AI 튜터 (Gemini)")

    if not st.session_state.tutor_messages:
        st.info(WELCOME_MESSAGE)

    for message in st.session_state.tutor_messages:
        with st.chat_message(message["role"]):
            st.write(message["content"])

    if prompt := st.chat_input("궁금한 점을 질문해 보세요..."):
        history = list(st.session_state.tutor_messages)
        st.session_state.tutor_messages.append({"role": "user", "content": prompt})
        with st.chat_message("user"):
            st.write(prompt)

        with st.chat_message("assistant"):
            with st.spinner("답변 생성 중..."):
                try:
                    response = api_post("/tutor/chat", {"message": prompt, "history": history})
                    if response.status_code == 200:
                        reply = response.json()["response"]
                    else:
                        reply = f"Error: {error_detail(response)}"
                except Exception as e:
                    reply = f"Connection error: {str(e)}"
            st.write(reply)
        st.session_state.tutor_messages.append({"role": "assistant", "content": reply})

# ---------------------------------------------------------------- meals & inquiries

def show_meal_tab():
    st.header("🍚 급식 알리미")
    selected = st.date_input("날짜 선택", value=date.today())

    with st.spinner("급식 정보를 불러오는 중입니다..."):
        try:
            response = api_get("/meals", date=selected.isoformat())
        except Exception as e:
            st.error(f"Error connecting to API: {str(e)}")
            return

    if response.status_code != 200:
        st.error(error_detail(response))
        return

    meals = response.json()["meals"]
    if not meals:
        st.caption("해당 날짜에는 급식 정보가 없습니다.")
    for meal in meals:
        st.subheader(meal["time"])
        st.text(meal["menu"])

def show_inquiry_tab():
    st.header("❓ 문의 및 피드백")
    content = st.text_area("문의 내용", placeholder="여기에 문의 내용을 작성해주세요...")
    if st.button("문의 제출", disabled=not content.strip()):
        response = api_post("/inquiries", {"user_id": st.session_state.user_id, "content": content})
        if response.status_code == 200:
            st.success("문의 내용이 성공적으로 접수되었습니다. 곧 답변드리겠습니다!")
        else:
            st.error(error_detail(response))

if __name__ == "__main__":
    main()

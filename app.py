import asyncio

import streamlit as st
from bharatshop.pipelines.chat_service import ChatService
from bharatshop.core.scoring import format_amount

st.set_page_config(layout="wide", page_title="BharatShop Assistant")

if "chat" not in st.session_state:
    st.session_state.chat = ChatService.from_env()

chat: ChatService = st.session_state.chat

# ---------- Global CSS ----------
st.markdown("""
<style>
body, .main, .stApp {
    background-color: #050b16;
    color: #e0e6f0;
}
.block-container {
    padding-top: 2.8rem;
    padding-bottom: 1.5rem;
}

/* Hero area */
.hero-title {
    font-size: 30px;
    font-weight: 800;
    background: linear-gradient(90deg, #ff9933, #ffd27f);
    -webkit-background-clip: text;
    color: transparent;
}
.hero-subtitle {
    font-size: 14px;
    color: #9ca7c6;
}

/* Product cards */
.product-card {
    border: 1px solid #1f2a3a;
    border-radius: 14px;
    padding: 14px 16px;
    margin-bottom: 12px;
    background: radial-gradient(circle at top left, #1a2740 0%, #050b16 55%);
    box-shadow: 0 4px 10px rgba(0,0,0,0.7);
}
.product-title {
    font-weight: 700;
    font-size: 16px;
    margin-bottom: 4px;
    color: #ffffff;
}
.product-price {
    font-size: 15px;
    font-weight: 600;
    color: #4fe3c1;
}
.product-meta {
    font-size: 13px;
    color: #d0d6e0;
}

/* Badges */
.badge {
    display: inline-block;
    padding: 2px 8px;
    border-radius: 999px;
    font-size: 11px;
    font-weight: 600;
    margin-right: 6px;
}
.badge-category {
    background: rgba(93, 156, 255, 0.16);
    color: #78aaff;
    border: 1px solid rgba(93, 156, 255, 0.4);
}
.badge-match {
    background: rgba(69, 214, 154, 0.16);
    color: #45d69a;
    border: 1px solid rgba(69, 214, 154, 0.4);
}
</style>
""", unsafe_allow_html=True)

# ---------- Hero header ----------
st.markdown('<div class="hero-title">BharatShop Shopping Assistant</div>', unsafe_allow_html=True)
st.markdown(
    '<div class="hero-subtitle">'
    'Ask for Indian D2C food and fashion in your own words, like '
    '<i>"vegan snacks under ₹300"</i> or <i>"cotton kurta for summer festivals"</i>.</div>',
    unsafe_allow_html=True
)
st.write("")

with st.sidebar:
    if st.button("🧹 Clear chat"):
        chat.clear_chat()


def render_recommendations(recs):
    cols = st.columns(2)
    for idx, rec in enumerate(recs):
        p = rec.product
        with cols[idx % 2]:
            st.markdown(
                f"""
                <div class="product-card">
                    <div class="product-title">{p.name}</div>
                    <div class="product-meta">
                        <span class="badge badge-match">{rec.match_percentage}% match</span>
                        <span class="badge badge-category">{p.sub_category or p.category}</span>
                    </div>
                    <div class="product-price">₹{format_amount(p.price)}</div>
                    <div class="product-meta">{p.description}</div>
                    <div class="product-meta"><b>Why suggested:</b> {rec.match_reason}</div>
                </div>
                """,
                unsafe_allow_html=True,
            )


for msg in chat.messages:
    with st.chat_message("user" if msg.sender == "user" else "assistant"):
        if msg.advisory:
            st.warning(msg.advisory)
        st.markdown(msg.text)
        if msg.recommendations:
            render_recommendations(msg.recommendations)

prompt = st.chat_input("What are you looking for today?")
if prompt:
    with st.chat_message("user"):
        st.markdown(prompt)
    with st.chat_message("assistant"):
        with st.spinner("Typing..."):
            reply = asyncio.run(chat.send_message_async(prompt))
        if reply is not None:
            if reply.advisory:
                st.warning(reply.advisory)
            st.markdown(reply.text)
            render_recommendations(reply.recommendations)

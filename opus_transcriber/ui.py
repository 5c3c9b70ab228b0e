# opus_transcriber/ui.py
# ------------------------------------------------------------
# Streamlit UI for the Opus Transcriber
# - Pick one .opus / .ogg / .m4a file
# - "Transcribe Audio" encodes it and calls the relay
# - Result, error and loading state rendered below
#
# Run: streamlit run opus_transcriber/ui.py
# ------------------------------------------------------------

import streamlit as st

from opus_transcriber.clients.relay_client import RelayClient
from opus_transcriber.errors import AudioReadError, TranscriptionAdapterError
from opus_transcriber.utils.audio_files import UPLOAD_EXTENSIONS, encode_data_uri, load_audio

st.set_page_config(page_title="Opus AI Transcriber", page_icon="🎙️")
st.title("🎙️ Opus AI Transcriber")
st.markdown("Upload an Opus, Ogg, or M4A audio file and let AI turn it into text.")

# ------------------------------------------------------------
# Session persistence
# ------------------------------------------------------------
if "transcription" not in st.session_state:
    st.session_state.transcription = ""
if "error" not in st.session_state:
    st.session_state.error = None
if "uploader_key" not in st.session_state:
    st.session_state.uploader_key = 0
if "last_file" not in st.session_state:
    st.session_state.last_file = None


def reset_results():
    st.session_state.transcription = ""
    st.session_state.error = None


def clear_file():
    reset_results()
    st.session_state.last_file = None
    # a fresh key drops the file held by the uploader widget
    st.session_state.uploader_key += 1


# ------------------------------------------------------------
# File selection
# ------------------------------------------------------------
uploaded = st.file_uploader(
    "OPUS, OGG, or M4A audio files only",
    type=UPLOAD_EXTENSIONS,
    key=f"uploader_{st.session_state.uploader_key}",
)

audio = None
if uploaded is not None:
    try:
        audio = load_audio(uploaded.name, uploaded.type, uploaded.getvalue)
    except ValueError as e:
        st.warning(str(e))
    except AudioReadError as e:
        st.error(f"**Error**\n\n{e}")

if audio is not None and audio.filename != st.session_state.last_file:
    # new selection clears the previous result
    reset_results()
    st.session_state.last_file = audio.filename

if audio is not None:
    c1, c2 = st.columns([4, 1])
    c1.markdown(f"📄 **{audio.filename}** — {audio.size_kb:.2f} KB")
    c2.button("✖ Clear", on_click=clear_file)

# ------------------------------------------------------------
# Transcribe → relay
# ------------------------------------------------------------
if st.button("Transcribe Audio", disabled=audio is None, type="primary"):
    reset_results()
    try:
        with st.spinner("Transcribing, please wait..."):
            base64_audio = encode_data_uri(audio.data, audio.mime_type)
            st.session_state.transcription = RelayClient().transcribe(base64_audio, audio.mime_type)
    except TranscriptionAdapterError as e:
        st.session_state.error = str(e)
    except Exception as e:
        st.session_state.error = str(e) or "An unknown error occurred."

if st.session_state.error:
    st.error(f"**Error**\n\n{st.session_state.error}")

if st.session_state.transcription:
    st.subheader("Transcription Result")
    # st.code renders with a copy-to-clipboard button
    st.code(st.session_state.transcription, language=None, wrap_lines=True)

"""Streamlit frontend for Help My Barber."""

import asyncio

import streamlit as st
from dotenv import load_dotenv

from core.api_client import GenerationClient
from core.config import configure_logging, get_service_url
from core.encoding import decode_data_url, extension_for
from core.schemas import PendingItem
from core.validation import ValidationError, validate_image_file, validate_prompt
from core.workflow import GenerationWorkflow

load_dotenv()
configure_logging()

# Page configuration
st.set_page_config(
    page_title="Help My Barber",
    page_icon="💈",
    layout="wide",
)


# ============================================================================
# Session Management
# ============================================================================


def get_workflow() -> GenerationWorkflow:
    """Get the workflow for this browser session, creating it on first use."""
    if "workflow" not in st.session_state:
        st.session_state.workflow = GenerationWorkflow(GenerationClient())
        st.session_state.upload_key = None
    return st.session_state.workflow


def handle_upload(workflow: GenerationWorkflow, uploaded_file) -> None:
    """Hand a newly selected file to the workflow once."""
    upload_key = f"{uploaded_file.name}:{uploaded_file.size}"
    if st.session_state.upload_key == upload_key:
        return
    st.session_state.upload_key = upload_key

    data = uploaded_file.getvalue()
    try:
        validate_image_file(data, uploaded_file.type)
    except ValidationError as e:
        st.error(str(e))
        return

    workflow.upload_image(data, uploaded_file.name, uploaded_file.type)


# ============================================================================
# UI Components
# ============================================================================


def render_item(item, index: int) -> None:
    """Render one result card or loading placeholder."""
    if isinstance(item, PendingItem):
        st.markdown(f"**{item.angle.value.title()} view**")
        st.info("Generating...")
        return

    variation = item.variation
    st.markdown(f"**{variation.angle.value.title()} view**")

    if not variation.is_image:
        # Text fallback from the model
        st.info(variation.image)
        return

    try:
        content_type, data = decode_data_url(variation.image)
    except ValueError:
        st.warning("Could not display this image.")
        return

    st.image(data, use_container_width=True)
    st.download_button(
        label="⬇️ Download",
        data=data,
        file_name=f"haircut_{variation.angle.value}{extension_for(content_type)}",
        mime=content_type,
        key=f"download_{index}_{variation.angle.value}",
    )


def render_items(container, items) -> None:
    with container.container():
        if not items:
            st.caption(
                "Upload your photo and describe your desired haircut to see "
                "AI-generated reference images"
            )
            return

        columns = st.columns(min(len(items), 3))
        for index, item in enumerate(items):
            with columns[index % len(columns)]:
                render_item(item, index)


async def run_with_progress(workflow: GenerationWorkflow, operation, container) -> bool:
    """Run a workflow operation, showing placeholders while it is in flight."""
    task = asyncio.ensure_future(operation)
    # Let the operation start so the in-flight state is visible
    await asyncio.sleep(0)
    render_items(container, workflow.display_items())
    return await task


def render_sidebar(workflow: GenerationWorkflow) -> None:
    """Render the sidebar with the photo upload."""
    with st.sidebar:
        st.header("💈 Help My Barber")
        st.caption(f"Service: {get_service_url()}")

        st.divider()

        st.subheader("Your Photo")
        uploaded_file = st.file_uploader(
            "Choose a photo",
            type=["png", "jpg", "jpeg", "webp"],
            help="Drag and drop or click to upload. Uploading a new photo starts over.",
        )
        if uploaded_file:
            handle_upload(workflow, uploaded_file)


def render_main(workflow: GenerationWorkflow) -> None:
    """Render the photo, prompt form and results."""
    st.header("Help My Barber")
    st.caption("Upload your photo to get a haircut reference image")

    view = workflow.view()
    if view.error:
        st.error(view.error)

    if view.image is None:
        st.info("Upload a photo in the sidebar to get started.")
        return

    photo_col, results_col = st.columns(2)

    with photo_col:
        st.subheader("Original Photo")
        st.image(view.image.data, use_container_width=True)

        with st.form("prompt_form"):
            prompt = st.text_input(
                "Describe your desired haircut:",
                value=view.prompt or "",
                placeholder="Low taper fade",
            )
            submitted = st.form_submit_button(
                "Generate Reference Image",
                type="primary",
                disabled=not view.can_generate_front,
                use_container_width=True,
            )

    with results_col:
        st.subheader("Your Reference Images" if view.items else "Reference Images")
        results = st.empty()
        render_items(results, view.items)

        angles_clicked = False
        if view.can_generate_angles:
            angles_clicked = st.button(
                "Generate side & back views", use_container_width=True
            )

    if submitted:
        try:
            validate_prompt(prompt)
        except ValidationError as e:
            st.error(str(e))
            return
        with st.spinner("Creating your reference image..."):
            asyncio.run(
                run_with_progress(workflow, workflow.generate_front(prompt), results)
            )
        st.rerun()

    if angles_clicked:
        with st.spinner("Creating side and back views..."):
            asyncio.run(
                run_with_progress(workflow, workflow.generate_angles(), results)
            )
        st.rerun()


# ============================================================================
# Main App
# ============================================================================


def main():
    """Main application."""
    workflow = get_workflow()

    render_sidebar(workflow)
    render_main(workflow)


if __name__ == "__main__":
    main()

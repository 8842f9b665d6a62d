"""投票用紙エディタページ."""

import streamlit as st

from ballotdesk.domain.entities.ballot import Ballot, Candidate, Position
from ballotdesk.domain.value_objects.image_upload import ImageUpload
from ballotdesk.interfaces.web.streamlit.presenters.ballot_editor_presenter import (
    BallotEditorPresenter,
)


_WORKFLOW_LABELS = {
    "admin": "管理者（新規作成）",
    "superadmin": "スーパー管理者（編集）",
}


def render_ballot_editor_page() -> None:
    """投票用紙エディタページを描画する."""
    st.header("投票用紙エディタ")

    election_id = st.number_input("選挙ID", min_value=1, step=1, value=None)
    workflow = st.radio(
        "ワークフロー",
        options=["admin", "superadmin"],
        format_func=_WORKFLOW_LABELS.__getitem__,
        horizontal=True,
    )
    if election_id is None:
        st.info("編集する選挙のIDを入力してください。")
        return

    presenter = BallotEditorPresenter(int(election_id), workflow)
    ballot = presenter.load_data()
    if ballot is None:
        st.error(presenter.load_error or "投票用紙を読み込めませんでした。")
        return

    editor = presenter.editor
    if editor is None:
        return

    _render_messages(presenter)

    tab1, tab2 = st.tabs(["編集", "一覧"])
    with tab1:
        _render_editor(presenter, ballot)
    with tab2:
        df = presenter.to_dataframe(editor.ballot)
        if df is None:
            st.info("候補者が登録されていません。")
        else:
            st.dataframe(df, use_container_width=True, hide_index=True)


def _render_messages(presenter: BallotEditorPresenter) -> None:
    editor = presenter.editor
    if editor is None:
        return
    if editor.scroll_to_top and editor.errors:
        st.error(f"{len(editor.errors)}件の入力エラーがあります。")
    for alert in editor.alerts:
        st.warning(alert)
    editor.dismiss_alerts()
    if editor.api_error:
        st.error(editor.api_error)
    if editor.notice:
        st.info(editor.notice)
    if editor.has_unsaved_changes:
        st.caption("未保存の変更があります。")


def _render_editor(presenter: BallotEditorPresenter, ballot: Ballot) -> None:
    editor = presenter.editor
    if editor is None:
        return
    errors = editor.errors

    description = st.text_area(
        "説明", value=ballot.description, key=f"ballot_description_{ballot.id.key}"
    )
    if "description" in errors:
        st.error(errors["description"])
    if description != ballot.description:
        presenter.handle_action("set_description", text=description)

    for position in ballot.positions:
        _render_position(presenter, position, errors)

    if st.button("ポジションを追加", key="add_position"):
        presenter.handle_action("add_position")
        st.rerun()

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("プレビュー", key="preview"):
            if presenter.handle_action("preview"):
                st.success("入力内容に問題はありません。")
            st.rerun()
    with col2:
        if st.button("保存", key="save", type="primary", disabled=editor.is_saving):
            result = presenter.save()
            if result.success:
                st.success("投票用紙を保存しました。")
            st.rerun()
    with col3:
        if st.button("候補者を個別保存", key="save_candidates"):
            presenter.save_candidates()
            st.rerun()


def _render_position(
    presenter: BallotEditorPresenter, position: Position, errors: dict[str, str]
) -> None:
    key = position.id.key
    title = position.name or "(名称未設定)"
    with st.expander(f"{position.display_order}. {title}", expanded=True):
        name = st.text_input("ポジション名", value=position.name, key=f"pos_name_{key}")
        if f"position-{key}" in errors:
            st.error(errors[f"position-{key}"])
        if name != position.name:
            presenter.handle_action(
                "update_position", position_id=position.id, field="name", value=name
            )

        max_choices = st.number_input(
            "最大選択数",
            min_value=1,
            step=1,
            value=position.max_choices,
            key=f"pos_max_{key}",
        )
        if int(max_choices) != position.max_choices:
            presenter.handle_action(
                "update_position",
                position_id=position.id,
                field="max_choices",
                value=int(max_choices),
            )
        if f"position-candidates-{key}" in errors:
            st.error(errors[f"position-candidates-{key}"])

        for candidate in position.candidates:
            _render_candidate(presenter, position, candidate, errors)

        col1, col2 = st.columns(2)
        with col1:
            if st.button("候補者を追加", key=f"add_cand_{key}"):
                presenter.handle_action("add_candidate", position_id=position.id)
                st.rerun()
        with col2:
            if st.button("ポジションを削除", key=f"remove_pos_{key}"):
                presenter.handle_action("remove_position", position_id=position.id)
                st.rerun()


def _render_candidate(
    presenter: BallotEditorPresenter,
    position: Position,
    candidate: Candidate,
    errors: dict[str, str],
) -> None:
    key = candidate.id.key
    st.divider()
    col_image, col_fields = st.columns([1, 3])

    with col_image:
        st.image(presenter.image_source(candidate), width=120)
        uploaded = st.file_uploader(
            "写真", type=["png", "jpg", "jpeg", "gif", "webp"], key=f"cand_img_{key}"
        )
        if uploaded is not None:
            signature = f"{uploaded.name}:{uploaded.size}"
            seen_key = f"cand_img_seen_{key}"
            if st.session_state.get(seen_key) != signature:
                st.session_state[seen_key] = signature
                presenter.select_image(
                    position.id,
                    candidate.id,
                    ImageUpload(
                        filename=uploaded.name,
                        content_type=uploaded.type or "application/octet-stream",
                        content=uploaded.getvalue(),
                    ),
                )
                st.rerun()
        image_error = errors.get(f"candidate-image-{key}")
        if image_error:
            st.error(image_error)

    with col_fields:
        for field, label in (
            ("first_name", "名"),
            ("last_name", "姓"),
            ("party", "政党"),
            ("slogan", "スローガン"),
        ):
            current = getattr(candidate, field)
            value = st.text_input(label, value=current, key=f"cand_{field}_{key}")
            if value != current:
                presenter.handle_action(
                    "update_candidate",
                    position_id=position.id,
                    candidate_id=candidate.id,
                    field=field,
                    value=value,
                )
        platform = st.text_area(
            "公約", value=candidate.platform, key=f"cand_platform_{key}"
        )
        if platform != candidate.platform:
            presenter.handle_action(
                "update_candidate",
                position_id=position.id,
                candidate_id=candidate.id,
                field="platform",
                value=platform,
            )
        if f"candidate-name-{key}" in errors:
            st.error(errors[f"candidate-name-{key}"])
        save_error = candidate.save_error or errors.get(f"candidate-save-{key}")
        if save_error:
            st.error(f"保存に失敗しました: {save_error}")
        if st.button("候補者を削除", key=f"remove_cand_{key}"):
            presenter.handle_action(
                "remove_candidate", position_id=position.id, candidate_id=candidate.id
            )
            st.rerun()

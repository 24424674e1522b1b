"""
application.prompts - Prompt templates and localized fixed strings.

Two builders share the same patient and entity blocks:

    build_analysis_prompt()     - one stateless request, four bold sections
    build_chat_system_prompt()  - the system instruction for follow-up chat

Section headings depend on the entity kind (article / trial / drug). Every
string exists in "zh" and "en"; unknown languages fall back to "en".
"""

from __future__ import annotations

from domain.models import Drug, Profile
from domain.ports import AnalyzableEntity

SUPPORTED_LANGUAGES = ("zh", "en")

MESSAGES: dict[str, dict[str, str]] = {
    "zh": {
        "disclaimer": (
            "免责声明：这是由人工智能根据公开资料生成的解释。研究处于早期阶段，"
            "可能不适用于每一位患者。它不能替代医生的建议。请务必咨询专业医疗人员。"
        ),
        "analysis_unavailable": "服务暂时不可用，请稍后再试。",
        "analysis_empty": "抱歉，暂时无法生成摘要。",
        "chat_unavailable": "网络连接出现问题，请重试。",
        "chat_empty": "抱歉，暂时无法回答这个问题。",
        "title_trial": "临床试验匹配: ",
        "title_drug": "药物适配: ",
    },
    "en": {
        "disclaimer": (
            "Disclaimer: this explanation was generated by AI from public sources. "
            "Research may be at an early stage and may not apply to every patient. "
            "It does not replace advice from your doctor. Always consult a medical professional."
        ),
        "analysis_unavailable": "The service is temporarily unavailable. Please try again later.",
        "analysis_empty": "Sorry, a summary could not be generated right now.",
        "chat_unavailable": "There was a network problem. Please try again.",
        "chat_empty": "Sorry, no answer could be generated for this question.",
        "title_trial": "Trial match: ",
        "title_drug": "Drug fit: ",
    },
}

_SECTIONS: dict[str, dict[str, list[tuple[str, str]]]] = {
    "zh": {
        "article": [
            ("1. 研究概要（家属版）", "用适合15岁学生理解的通俗中文总结这篇文章的核心内容。"),
            ("2. 研究概要（专业版）", "为专业人士提供的精炼医学摘要。"),
            ("3. 根据患者个性化病情，这个研究对我有何种意义",
             "结合上述患者档案进行个性化解读。例如，如果文章关于第51外显子跳跃，而患者有不同的突变，"
             "请解释为何可能不适用。如果是基础科学论文，请解释其潜在的未来影响。"),
            ("4. 给家庭启示", "保持充满希望但务实的语气，总结这篇文章给家庭带来的启示或建议。"),
        ],
        "trial": [
            ("1. 试验概要（家属版）", "用通俗中文说明这个试验在研究什么、参与者需要做什么。"),
            ("2. 试验概要（专业版）", "为专业人士概括试验设计、阶段、干预措施和主要终点。"),
            ("3. 入组资格匹配评估",
             "逐条对照入组/排除标准与上述患者档案（年龄、突变类型、行动能力、激素使用、地区），"
             "指出可能符合、可能不符合以及需要向研究中心确认的条目。"),
            ("4. 给家庭的下一步建议", "说明如何联系研究中心以及就诊前需要准备的资料。"),
        ],
        "drug": [
            ("1. 药物简介（家属版）", "用通俗中文说明这种药物如何起作用、适用于哪些患者。"),
            ("2. 药物简介（专业版）", "为专业人士概括作用机制、适应症、给药方式和主要不良反应。"),
            ("3. 适用性评估",
             "结合上述患者档案（尤其是基因突变类型、年龄和行动能力）判断这种药物可能适合或不适合的原因。"),
            ("4. 给家庭的沟通要点", "列出就诊时可以向医生提出的问题。"),
        ],
    },
    "en": {
        "article": [
            ("1. Research summary (for families)",
             "Summarize the core findings in plain language a 15-year-old could follow."),
            ("2. Research summary (for professionals)", "A concise medical summary for clinicians."),
            ("3. What this research means for this patient",
             "Relate the findings to the patient profile above. For example, if the article is about "
             "exon 51 skipping and the patient has a different mutation, explain why it may not apply. "
             "For basic science papers, explain the possible future impact."),
            ("4. Takeaways for the family",
             "Hopeful but realistic: what the family can take from this article."),
        ],
        "trial": [
            ("1. Trial overview (for families)",
             "Explain in plain language what the trial studies and what participants do."),
            ("2. Trial overview (for professionals)",
             "Design, phase, intervention and primary endpoints."),
            ("3. Eligibility match",
             "Compare the inclusion and exclusion criteria with the patient profile above (age, mutation, "
             "ambulatory status, steroid use, region). List likely matches, likely exclusions and items "
             "to confirm with the study site."),
            ("4. Next steps for the family",
             "How to contact the study site and what to prepare before a visit."),
        ],
        "drug": [
            ("1. About this drug (for families)",
             "Explain in plain language how the drug works and who it is for."),
            ("2. About this drug (for professionals)",
             "Mechanism, indication, administration and key adverse effects."),
            ("3. Suitability for this patient",
             "Using the patient profile above (especially mutation, age and ambulatory status), explain "
             "why the drug may or may not be suitable."),
            ("4. Questions to discuss with the doctor",
             "List questions the family can bring to their next appointment."),
        ],
    },
}

_ROLE = {
    "zh": "你是一位富有同情心且专业的医学AI助手，专门服务于杜氏肌营养不良症（DMD）家庭。请用中文（简体）回答。",
    "en": (
        "You are a compassionate, professional medical AI assistant serving families affected by "
        "Duchenne Muscular Dystrophy (DMD). Answer in English."
    ),
}

_CHAT_ROLE = {
    "zh": (
        "你是DMD研究的AI解读员。你正在与一位家庭成员交谈。"
        "请始终保持友善，使用通俗易懂的中文（15岁理解水平），并基于提供的具体内容进行回答。"
    ),
    "en": (
        "You are an AI interpreter of DMD research talking with a family member. Stay kind, use plain "
        "English a 15-year-old could follow, and base your answers on the specific content provided."
    ),
}


def normalize_language(language: str) -> str:
    return language if language in SUPPORTED_LANGUAGES else "en"


def message(key: str, language: str) -> str:
    """Fixed UI / fallback text in the given language."""
    return MESSAGES[normalize_language(language)][key]


def inquiry_title(entity: AnalyzableEntity, language: str) -> str:
    """Title a saved inquiry is listed under."""
    language = normalize_language(language)
    if entity.kind == "trial":
        return message("title_trial", language) + entity.display_title
    if isinstance(entity, Drug):
        return message("title_drug", language) + entity.localized_brand_name(language)
    return entity.display_title


def build_analysis_prompt(entity: AnalyzableEntity, profile: Profile, language: str = "zh") -> str:
    """Assemble the one-shot analysis request for an entity."""
    language = normalize_language(language)
    zh = language == "zh"
    sections = _SECTIONS[language].get(entity.kind, _SECTIONS[language]["article"])

    if zh:
        task = "任务:\n请严格按照以下四个部分的标题和要求进行解读，**每个小标题请务必加粗**（例如: **标题**），并且每个部分之间请务必空一行以便阅读："
        requirement = "要求"
        closing = "请以简短清晰的免责声明结尾，例如：" + message("disclaimer", language)
    else:
        task = (
            "Task:\nStructure your answer in exactly the four sections below. **Bold every heading** "
            "(e.g. **Heading**) and leave a blank line between sections:"
        )
        requirement = "Requirement"
        closing = "End with a short, clear disclaimer such as: " + message("disclaimer", language)

    section_text = "\n\n".join(
        f"**{heading}**\n({requirement}: {instruction})" for heading, instruction in sections
    )

    return "\n\n".join([
        _ROLE[language],
        ("当前患者档案：" if zh else "Current patient profile:") + "\n" + profile.prompt_context(language),
        entity.prompt_context(language),
        task,
        section_text,
        closing,
    ])


def build_chat_system_prompt(entity: AnalyzableEntity, profile: Profile, language: str = "zh") -> str:
    """System instruction for follow-up questions about the same entity."""
    language = normalize_language(language)
    disclaimer = message("disclaimer", language)
    if language == "zh":
        rules = (
            "规则:\n"
            "- 严格基于上述内容和DMD的一般医学知识回答用户问题。\n"
            "- 不要讨论与当前内容无关的其他文章、试验或药物。\n"
            "- 如果提供的内容没有回答该问题，请直说。\n"
            f"- 如果给出任何类似建议的内容，必须包含免责声明: \"{disclaimer}\""
        )
        blocks = ["背景:\n" + entity.prompt_context(language), "患者背景:\n" + profile.prompt_context(language)]
    else:
        rules = (
            "Rules:\n"
            "- Answer strictly from the content above and general medical knowledge about DMD.\n"
            "- Do not discuss other articles, trials or drugs unrelated to this content.\n"
            "- If the content does not answer the question, say so plainly.\n"
            f"- Any advice-like answer must include this disclaimer: \"{disclaimer}\""
        )
        blocks = ["Context:\n" + entity.prompt_context(language), "Patient:\n" + profile.prompt_context(language)]
    return "\n\n".join([_CHAT_ROLE[language], *blocks, rules])

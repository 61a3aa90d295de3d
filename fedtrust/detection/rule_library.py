"""
Rule Library: categorized, multi-language moderation-rule patterns.

Groups:
- umbrella: broad hate/discrimination/harassment/abuse/inclusion language
- core_safety: CSAM, harassment, hate speech, doxxing, consent, spam, violence, misinformation
- protected_class: race, gender identity, sexual orientation, religion, disability, age, caste
- positive: appeals, transparency, content warnings, graduated enforcement, community input
- red_flag: free speech absolutism, hostile framing, discrimination allowed, vague rules
"""
import re
from typing import Dict, List, NamedTuple, Optional, Pattern, Sequence, Tuple

import config
from fedtrust.schemas import RulePattern


UNBOUNDED_GAP = re.compile(r"(?<!\\)\.([*+])")


def _rule(category, subcategory, label, weight, patterns, red_flag=False):
    return RulePattern(
        category=category,
        subcategory=subcategory,
        label=label,
        weight=weight,
        patterns={lang: tuple(variants) for lang, variants in patterns.items()},
        is_red_flag=red_flag,
        is_positive=not red_flag,
    )


def bound_gaps(source: str, limit: int) -> str:
    """Rewrite unbounded ".*" / ".+" gaps as ".{0,limit}" / ".{1,limit}" """
    return UNBOUNDED_GAP.sub(
        lambda m: "." + ("{0,%d}" if m.group(1) == "*" else "{1,%d}") % limit,
        source,
    )


# Umbrella patterns are checked first to catch broad language
UMBRELLA_PATTERNS: Tuple[RulePattern, ...] = (
    _rule("umbrella", "hate_speech_general", "Hate Speech (general)", 8, {
        "en": [
            "hate speech",
            "hateful.{0,20}(?:content|language|behavior)",
            "(?:no|don'?t|prohibit|forbidden|ban).{0,30}hate",
            "hate.{0,20}(?:not|prohibited|forbidden|banned)",
            "bigotry",
            "bigoted",
        ],
        "de": ["hassrede", "hetze", "volksverhetzung", "bigotterie"],
        "fr": ["discours de haine", "propos haineux", "bigoterie"],
        "es": ["discurso de odio", "lenguaje de odio", "intolerancia"],
        "ja": ["ヘイトスピーチ", "憎悪表現", "偏見"],
    }),
    _rule("umbrella", "discrimination_general", "Discrimination (general)", 8, {
        "en": [
            "discrimination",
            "discriminat(?:e|ing|ory)",
            "(?:no|don'?t|prohibit|forbidden|ban).{0,30}discriminat",
            "discriminat.{0,20}(?:not|prohibited|forbidden|banned)",
            "prejudice",
            "bias.{0,20}(?:against|toward)",
        ],
        "de": ["diskriminierung", "vorurteil"],
        "fr": ["discrimination", "préjugé"],
        "es": ["discriminación", "prejuicio"],
        "ja": ["差別", "偏見"],
    }),
    _rule("umbrella", "harassment_general", "Harassment (general)", 8, {
        "en": [
            "(?:no|don'?t|prohibit|forbidden|ban).{0,30}harass",
            "harass.{0,20}(?:not|prohibited|forbidden|banned|tolerated)",
            "(?:no|don'?t|prohibit|forbidden|ban).{0,30}bully",
            "bully.{0,20}(?:not|prohibited|forbidden|banned)",
        ],
        "de": ["keine.*belästigung", "kein.*mobbing"],
        "fr": ["pas.*harcèlement", "interdit.*harceler"],
        "es": ["no.*acoso", "prohibido.*acosar"],
        "ja": ["嫌がらせ.*禁止", "ハラスメント.*禁止"],
    }),
    _rule("umbrella", "abuse_general", "Abuse (general)", 7, {
        "en": [
            "(?:no|don'?t|prohibit|forbidden|ban).{0,30}abuse",
            "abuse.{0,20}(?:not|prohibited|forbidden|banned|tolerated)",
            "abusive.{0,20}(?:behavior|content|language)",
        ],
        "de": ["keine.*missbrauch", "kein.*beleidigung"],
        "fr": ["pas.*abus", "interdit.*abuser"],
        "es": ["no.*abuso", "prohibido.*abusar"],
        "ja": ["虐待.*禁止", "悪用.*禁止"],
    }),
    _rule("umbrella", "respect_inclusion", "Respect & Inclusion", 6, {
        "en": [
            "respectful.{0,20}(?:to|toward|of).{0,20}(?:all|everyone|others)",
            "inclusive.{0,20}(?:community|environment|space)",
            "safe.{0,20}(?:space|environment|community).{0,20}(?:for|to).{0,20}(?:all|everyone)",
            "welcoming.{0,20}(?:to|for).{0,20}(?:all|everyone)",
            "treat.{0,20}(?:others|people|everyone).{0,20}(?:with|respect|dignity)",
        ],
        "de": ["respektvoll.*gegenüber", "inklusiv.*gemeinschaft", "sicherer.*raum"],
        "fr": ["respectueux.*envers", "communauté.*inclusive", "espace.*sûr"],
        "es": ["respetuoso.*hacia", "comunidad.*inclusiva", "espacio.*seguro"],
        "ja": ["尊重", "包括的.*コミュニティ", "安全.*スペース"],
    }),
)

CORE_SAFETY_PATTERNS: Tuple[RulePattern, ...] = (
    _rule("csam", "explicit_ban", "CSAM Protection", 5, {
        "en": [
            "child sexual abuse",
            "csam",
            "child pornography",
            "child exploitation",
            "minors?.{0,20}sexual",
            "sexual.{0,20}minors?",
            "underage.{0,20}sexual",
            "sexual.{0,20}underage",
        ],
        "de": ["kindesmissbrauch", "kinderpornografie", "csam", "sexueller missbrauch von kindern"],
        "fr": ["abus sexuel.*enfants?", "pédopornographie", "csam", "exploitation.*enfants?"],
        "es": ["abuso sexual.*menores?", "pornografía infantil", "csam", "explotación.*menores?"],
        "ja": ["児童ポルノ", "児童性的虐待", "未成年者.*性的"],
    }),
    _rule("harassment", "general_ban", "Harassment", 5, {
        "en": [
            "harassment",
            "harassing",
            "harass",
            "bullying",
            "bully",
            "stalking",
            "stalk",
            "targeted.{0,20}abuse",
            "sustained.{0,20}attacks?",
            "pile[- ]?ons?",
            "dogpiling",
            "brigading",
            "intimidation",
            "intimidating",
            "intimidate",
            "block.*evasion",
            "evading.*blocks?",
            "circumvent.*blocks?",
        ],
        "de": ["belästigung", "mobbing", "stalking", "schikanierung", "blockumgehung"],
        "fr": ["harcèlement", "intimidation", "harceler", "contournement.*blocage"],
        "es": ["acoso", "intimidación", "hostigamiento", "evasión.*bloqueo"],
        "ja": ["嫌がらせ", "ハラスメント", "いじめ", "ストーカー", "ブロック回避"],
    }),
    _rule("hate_speech", "general_ban", "Hate Speech", 5, {
        "en": [
            "hate speech",
            "hate.{0,10}speech",
            "hateful.{0,20}(?:content|language|speech|rhetoric)",
            "slurs?",
            "epithets?",
            "dehumaniz",
            "incit.{0,20}hatred",
            "promote.{0,20}hatred",
            "hatred.{0,20}based on",
            "inflammatory.{0,20}language",
            "offensive.{0,20}language",
        ],
        "de": ["hassrede", "hetze", "volksverhetzung", "hass.*äußerung"],
        "fr": ["discours de haine", "propos haineux", "incitation.*haine"],
        "es": ["discurso de odio", "lenguaje de odio", "incitación.*odio"],
        "ja": ["ヘイトスピーチ", "憎悪表現", "差別的.*発言"],
    }),
    _rule("privacy", "doxxing_ban", "Privacy/Doxxing", 5, {
        "en": [
            "doxx?ing",
            "personal information.*without consent",
            "private.*information.*without.*permission",
            "address.*phone.*without",
            "real.*name.*without.*consent",
            "deadnaming",
        ],
        "de": ["doxxing", "persönliche.*daten.*ohne.*zustimmung", "deadnaming"],
        "fr": ["doxing", "informations.*personnelles.*sans.*consentement", "deadnaming"],
        "es": ["doxing", "información.*personal.*sin.*consentimiento", "deadnaming"],
        "ja": ["ドキシング", "個人情報.*無断.*公開", "デッドネーミング"],
    }),
    _rule("consent", "general_violations", "Consent Violations", 5, {
        "en": [
            "non[- ]?consensual",
            "without.*consent",
            "unsolicited.*sexual",
            "unwanted.*advances",
            "revenge.*porn",
            "intimate.*images.*without.*consent",
        ],
        "de": ["ohne.*zustimmung", "unerwünschte.*sexuelle", "racheporno"],
        "fr": ["non.{0,5}consensuel", "sans.*consentement", "pornodivulgation"],
        "es": ["no.*consensual", "sin.*consentimiento", "porno.*venganza"],
        "ja": ["同意.*なし", "非同意", "合意.*ない"],
    }),
    _rule("spam", "general_ban", "Spam/Scams", 3, {
        "en": [
            "spam",
            "scam",
            "phishing",
            "unsolicited.*advertis",
            "malware",
            "excessive.*promotion",
            "link.*farming",
        ],
        "de": ["spam", "betrug", "phishing", "malware", "unerwünschte.*werbung"],
        "fr": ["spam", "arnaque", "hameçonnage", "logiciel.*malveillant"],
        "es": ["spam", "estafa", "phishing", "malware", "publicidad.*no.*solicitada"],
        "ja": ["スパム", "詐欺", "フィッシング", "マルウェア"],
    }),
    _rule("violence", "threats_ban", "Violence/Threats", 5, {
        "en": [
            "threats?.*violence",
            "violent.*threats?",
            "death.*threats?",
            "calls?.*violence",
            "incit.*violence",
            "glorif.*violence",
            "graphic.*violence",
        ],
        "de": ["gewaltandrohung", "morddrohung", "aufruf.*gewalt", "gewaltverherrlichung"],
        "fr": ["menaces?.*violence", "menaces?.*mort", "incitation.*violence", "apologie.*violence"],
        "es": ["amenazas?.*violencia", "amenazas?.*muerte", "incitación.*violencia"],
        "ja": ["暴力.*脅迫", "殺害.*予告", "暴力.*扇動"],
    }),
    _rule("misinformation", "harmful_misinfo", "Misinformation", 2, {
        "en": [
            "misinformation",
            "disinformation",
            "false.*information",
            "misleading.*information",
            "deliberately.*false",
            "knowingly.*false",
            "false.*(?:and|or).*misleading",
            "misleading.*(?:and|or).*false",
            "medical.*misinformation",
            "health.*misinformation",
            "election.*interference",
            "coordinated.*inauthentic",
        ],
        "de": [
            "fehlinformation", "desinformation", "falsche.*information", "irreführend",
            "medizinische.*fehlinformation", "gesundheit.*desinformation", "wahlmanipulation",
        ],
        "fr": [
            "désinformation", "information.*fausse", "information.*trompeuse",
            "désinformation.*médicale", "désinformation.*santé", "ingérence.*électorale",
        ],
        "es": [
            "desinformación", "información.*falsa", "información.*engañosa",
            "desinformación.*médica", "desinformación.*salud", "interferencia.*electoral",
        ],
        "ja": ["誤情報", "偽情報", "虚偽.*情報", "誤解.*招く", "医療.*誤情報", "健康.*デマ", "選挙.*干渉"],
    }),
)

PROTECTED_CLASS_PATTERNS: Tuple[RulePattern, ...] = (
    _rule("protected_class", "race", "Race", 3, {
        "en": [
            "race",
            "racial",
            "racism",
            "racist",
            "ethnicity",
            "ethnic",
            "color",
            "colour",
            "national.*origin",
            "xenophobia",
            "xenophobic",
        ],
        "de": ["rasse", "rassismus", "ethnisch", "herkunft", "fremdenfeindlich"],
        "fr": ["race", "racisme", "raciste", "ethnicité", "ethnique", "origine.*nationale", "xénophobie"],
        "es": ["raza", "racismo", "racista", "etnicidad", "étnico", "origen.*nacional", "xenofobia"],
        "ja": ["人種", "民族", "出身", "国籍", "外国人嫌悪"],
    }),
    _rule("protected_class", "gender_identity", "Gender Identity", 3, {
        "en": [
            "gender.*identity",
            "transgender",
            r"trans(?:gender)?(?:\b|phobia)",
            "non[- ]?binary",
            "gender.*expression",
            "cisgender",
            "transphobia",
            "transphobic",
            "gender.*diverse",
            "sexism",
            "sexist",
            "misogyn",
            "gender",
            r"sex(?:\b|ual.*discrimination)",
        ],
        "de": [
            "geschlechtsidentität", "transgender", "nicht[- ]?binär", "geschlechtsausdruck",
            "transphobie", "sexismus", "misogynie", "geschlecht",
        ],
        "fr": [
            "identité.*genre", "transgenre", "non[- ]?binaire", "expression.*genre",
            "transphobie", "sexisme", "misogynie", "genre",
        ],
        "es": [
            "identidad.*género", "transgénero", "no.*binario", "expresión.*género",
            "transfobia", "sexismo", "misoginia", "género",
        ],
        "ja": ["性自認", "トランスジェンダー", "ノンバイナリー", "性表現", "トランス嫌悪", "性差別", "女性嫌悪", "性別"],
    }),
    _rule("protected_class", "sexual_orientation", "Sexual Orientation", 3, {
        "en": [
            "sexual.*orientation",
            "lgbtq",
            "lgbt",
            "lgbtqia",
            "gay",
            "lesbian",
            "bisexual",
            "queer",
            "asexual",
            "pansexual",
            "homophobia",
            "homophobic",
        ],
        "de": ["sexuelle.*orientierung", "lgbtq", "schwul", "lesbisch", "bisexuell", "homophobie"],
        "fr": ["orientation.*sexuelle", "lgbtq", "gai", "lesbienne", "bisexuel", "homophobie"],
        "es": ["orientación.*sexual", "lgbtq", "gay", "lesbiana", "bisexual", "homofobia"],
        "ja": ["性的指向", "lgbtq", "ゲイ", "レズビアン", "ホモフォビア"],
    }),
    _rule("protected_class", "religion", "Religion", 3, {
        "en": [
            "religion",
            "religious",
            "faith",
            "belief",
            "creed",
            "antisemitism",
            "anti[- ]?semitism",
            "antisemitic",
            "islamophobia",
            "islamophobic",
        ],
        "de": ["religion", "religiös", "glaube", "bekenntnis", "antisemitismus", "islamophobie"],
        "fr": ["religion", "religieux", "foi", "croyance", "antisémitisme", "islamophobie"],
        "es": ["religión", "religioso", "fe", "creencia", "antisemitismo", "islamofobia"],
        "ja": ["宗教", "信仰", "信条", "反ユダヤ主義", "イスラム嫌悪"],
    }),
    _rule("protected_class", "disability", "Disability", 3, {
        "en": [
            "disability",
            "disabilities",
            "disabled",
            "ableism",
            "ableist",
            "neurodivergent",
            "neurodiversity",
            "mental.*health",
            "mental.*illness",
        ],
        "de": ["behinderung", "behindert", "ableismus", "neurodivergent", "neurodiversität"],
        "fr": ["handicap", "handicapé", "validisme", "neurodivergent", "neurodiversité"],
        "es": ["discapacidad", "discapacitado", "capacitismo", "neurodivergente", "neurodiversidad"],
        "ja": ["障害", "障がい", "能力主義", "ニューロダイバージェント", "神経多様性"],
    }),
    _rule("protected_class", "age", "Age", 2, {
        "en": ["age", "ageism", "ageist"],
        "de": ["alter", "altersdiskriminierung"],
        "fr": ["âge", "âgisme"],
        "es": ["edad", "edadismo"],
        "ja": ["年齢", "年齢差別"],
    }),
    _rule("protected_class", "caste", "Caste", 3, {
        "en": ["caste", "casteism", "casteist"],
        "de": ["kaste", "kastensystem"],
        "fr": ["caste", "système.*castes"],
        "es": ["casta", "sistema.*castas"],
        "ja": ["カースト", "カースト制度"],
    }),
)

POSITIVE_INDICATOR_PATTERNS: Tuple[RulePattern, ...] = (
    _rule("positive", "appeals_process", "Appeals Process", 3, {
        "en": ["appeals?", "appeal.*process", "contest.*decision", "review.*decision", "dispute"],
        "de": ["berufung", "einspruch", "beschwerde"],
        "fr": ["appel", "recours", "contester"],
        "es": ["apelación", "recurso", "impugnar"],
        "ja": ["異議申し立て", "再審査", "不服申し立て"],
    }),
    _rule("positive", "transparency", "Transparency", 2, {
        "en": ["transparency", "transparent", "moderation.*log", "public.*moderation", "accountability"],
        "de": ["transparenz", "rechenschaftspflicht", "moderation.*protokoll"],
        "fr": ["transparence", "responsabilité", "journal.*modération"],
        "es": ["transparencia", "responsabilidad", "registro.*moderación"],
        "ja": ["透明性", "説明責任", "モデレーション.*記録"],
    }),
    _rule("positive", "content_warnings", "Content Warnings", 2, {
        "en": ["content.*warning", "cw", "trigger.*warning", "tw", "nsfw.*tag"],
        "de": ["inhaltswarnung", "trigger.*warnung"],
        "fr": ["avertissement.*contenu", "avertissement.*déclencheur"],
        "es": ["advertencia.*contenido", "advertencia.*disparador"],
        "ja": ["コンテンツ警告", "トリガー警告", "閲覧注意"],
    }),
    _rule("positive", "graduated_enforcement", "Graduated Enforcement", 2, {
        "en": ["graduated", "escalat", "warning.*before", "progressive.*enforcement", "proportional"],
        "de": ["abgestuft", "eskalation", "warnung.*vor", "verhältnismäßig"],
        "fr": ["gradué", "escalade", "avertissement.*avant", "proportionné"],
        "es": ["graduado", "escalamiento", "advertencia.*antes", "proporcional"],
        "ja": ["段階的", "エスカレーション", "警告.*前"],
    }),
    _rule("positive", "community_input", "Community Input", 2, {
        "en": ["community.*input", "user.*feedback", "democratic", "community.*vote"],
        "de": ["gemeinschaft.*beteiligung", "benutzer.*feedback", "demokratisch"],
        "fr": ["participation.*communauté", "retour.*utilisateur", "démocratique"],
        "es": ["participación.*comunidad", "retroalimentación.*usuario", "democrático"],
        "ja": ["コミュニティ.*参加", "ユーザー.*フィードバック", "民主的"],
    }),
)

RED_FLAG_PATTERNS: Tuple[RulePattern, ...] = (
    _rule("red_flag", "free_speech_absolutism", "Free Speech Absolutism", -10, {
        "en": [
            "free speech.*absolute",
            "unlimited.*free.*speech",
            "no.*censorship",
            "anything.*goes",
            "free.*expression.*paramount",
        ],
        "de": ["meinungsfreiheit.*absolut", "keine.*zensur"],
        "fr": ["liberté.*expression.*absolue", "pas.*censure"],
        "es": ["libertad.*expresión.*absoluta", "sin.*censura"],
        "ja": ["言論.*絶対.*自由", "検閲.*なし"],
    }, red_flag=True),
    _rule("red_flag", "hostile_framing", "Hostile Framing", -15, {
        "en": [
            "woke.*mob",
            "cancel.*culture",
            "snowflakes?",
            "sjw",
            "politically.*correct.*police",
            "thought.*police",
        ],
        "de": ["woke.*mob", "cancel.*kultur"],
        "fr": ["woke.*mob", "culture.*annulation"],
        "es": ["woke.*mob", "cultura.*cancelación"],
        "ja": ["ポリコレ.*警察"],
    }, red_flag=True),
    _rule("red_flag", "discrimination_allowed", "Discrimination Allowed", -20, {
        "en": [
            "right.*discriminate",
            "protected.*from.*criticism",
            "special.*protection.*for",
            "criticism.*is.*not.*[a-z]+phobia",
        ],
        "de": ["recht.*diskriminieren"],
        "fr": ["droit.*discriminer"],
        "es": ["derecho.*discriminar"],
        "ja": ["差別.*権利"],
    }, red_flag=True),
    _rule("red_flag", "vague_absent", "Vague/Absent", -5, {
        "en": [
            "^be.*nice$",
            "^be.*kind$",
            "^don'?t.*be.*jerk",
            "common.*sense",
            "use.*judgement",
        ],
        "de": ["^sei.*nett$", "gesunder.*menschenverstand"],
        "fr": ["^sois.*gentil", "bon.*sens"],
        "es": ["^sé.*amable", "sentido.*común"],
        "ja": ["^優しく.*して", "常識"],
    }, red_flag=True),
)

GROUPS: Dict[str, Tuple[RulePattern, ...]] = {
    "umbrella": UMBRELLA_PATTERNS,
    "core_safety": CORE_SAFETY_PATTERNS,
    "protected_class": PROTECTED_CLASS_PATTERNS,
    "positive": POSITIVE_INDICATOR_PATTERNS,
    "red_flag": RED_FLAG_PATTERNS,
}

# Umbrella patterns first so broad language is matched before specifics
ALL_PATTERNS: Tuple[RulePattern, ...] = (
    UMBRELLA_PATTERNS
    + CORE_SAFETY_PATTERNS
    + PROTECTED_CLASS_PATTERNS
    + POSITIVE_INDICATOR_PATTERNS
    + RED_FLAG_PATTERNS
)


class CompiledVariant(NamedTuple):
    """One compiled regex for one pattern in one language"""
    rule: RulePattern
    language: str
    source: str
    regex: Pattern


class RuleLibrary:
    """
    Immutable table of rule patterns, compiled once.

    A variant that fails to compile is skipped and described in
    `diagnostics`; the rest of the table stays usable.
    """

    def __init__(
        self,
        patterns: Optional[Sequence[RulePattern]] = None,
        gap_limit: int = config.PATTERN_GAP_LIMIT
    ):
        self._patterns: Tuple[RulePattern, ...] = tuple(ALL_PATTERNS if patterns is None else patterns)
        self._by_key: Dict[Tuple[str, str], RulePattern] = {p.key: p for p in self._patterns}
        self._diagnostics: List[str] = []

        compiled: Dict[str, List[CompiledVariant]] = {}
        for rule in self._patterns:
            for language, sources in rule.patterns.items():
                for source in sources:
                    try:
                        regex = re.compile(bound_gaps(source, gap_limit), re.IGNORECASE | re.MULTILINE)
                    except re.error as e:
                        self._diagnostics.append(
                            f"Skipped pattern {source!r} ({rule.category}/{rule.subcategory}, {language}): {e}"
                        )
                        continue
                    compiled.setdefault(language, []).append(
                        CompiledVariant(rule, language, source, regex)
                    )

        self._compiled: Dict[str, Tuple[CompiledVariant, ...]] = {
            language: tuple(variants) for language, variants in compiled.items()
        }

    @property
    def patterns(self) -> Tuple[RulePattern, ...]:
        return self._patterns

    @property
    def diagnostics(self) -> Tuple[str, ...]:
        return tuple(self._diagnostics)

    @property
    def languages(self) -> Tuple[str, ...]:
        return tuple(self._compiled)

    def __len__(self) -> int:
        return len(self._patterns)

    def patterns_for(self, language: str, fallback: Optional[str] = None) -> Tuple[CompiledVariant, ...]:
        """
        Compiled variants for one language, in table order.

        Args:
            language: Language code (e.g. "de")
            fallback: Language whose variants stand in for patterns that
                have none in `language`

        Returns:
            Tuple of CompiledVariant (empty for an unknown language)
        """
        variants = self._compiled.get(language, ())
        if fallback is None or fallback == language:
            return variants

        covered = {v.rule.key for v in variants}
        substitutes = tuple(
            v for v in self._compiled.get(fallback, ()) if v.rule.key not in covered
        )
        if not substitutes:
            return variants

        order = {rule.key: i for i, rule in enumerate(self._patterns)}
        return tuple(sorted(variants + substitutes, key=lambda v: order[v.rule.key]))

    def group(self, name: str) -> Tuple[RulePattern, ...]:
        """Patterns of one group that are present in this library"""
        members = {p.key for p in GROUPS[name]}
        return tuple(p for p in self._patterns if p.key in members)

    def categories(self, name: str) -> frozenset:
        """Category names belonging to a group"""
        return frozenset(p.category for p in self.group(name))

    def get(self, category: str, subcategory: str) -> RulePattern:
        """Look up one pattern; an unknown key raises KeyError"""
        return self._by_key[(category, subcategory)]

    def label(self, identifier: str) -> str:
        """Display label for a coverage id (core-safety category or subcategory)"""
        for pattern in self._patterns:
            if pattern.category == identifier:
                return pattern.label
        for pattern in self._patterns:
            if pattern.subcategory == identifier:
                return pattern.label
        return identifier.replace("_", " ").title()
